"""Build configuration rows."""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from cargo_manifest.models import Project, TargetSpec
from extract.cargo_targets import all_targets
from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import BuildRow
from serde_msgspec import encode_json

DEFAULT_BUILD_SCRIPT = "build.rs"


class BuildExtractor:
    """Emit one :class:`BuildRow` per build-relevant setting.

    Categories, in emission order: ``build_script``, ``setting``, ``feature``,
    ``target``, ``platform``, ``profile``.
    """

    phase = ExtractionPhase.BUILD

    def extract(self, target: ExtractionTarget) -> list[BuildRow]:
        project = target.project
        entries = [
            *_build_script(project),
            *_settings(project),
            *_features(project),
            *_targets(project),
            *_platforms(project),
            *_profiles(project),
        ]
        return [
            BuildRow(
                crate_name=project.name,
                crate_version=project.version,
                category=category,
                name=name,
                value=value,
                detail=detail,
            )
            for category, name, value, detail in entries
        ]


type _Entry = tuple[str, str, str | None, tuple[str, ...]]


def _build_script(project: Project) -> Iterator[_Entry]:
    setting = project.build
    if setting is False:
        yield ("build_script", DEFAULT_BUILD_SCRIPT, "disabled", ())
        return
    path = setting if isinstance(setting, str) else DEFAULT_BUILD_SCRIPT
    exists = (project.root / path).is_file()
    if isinstance(setting, str) or setting is True:
        status = "present" if exists else "missing"
    else:
        status = "present" if exists else "absent"
    detail = (f"links={project.links}",) if project.links else ()
    yield ("build_script", path, status, detail)


def _settings(project: Project) -> Iterator[_Entry]:
    settings = {
        "edition": project.edition,
        "rust-version": project.rust_version,
        "links": project.links,
    }
    for name, value in settings.items():
        if value is not None:
            yield ("setting", name, value, ())


def _features(project: Project) -> Iterator[_Entry]:
    explicit = project.features
    for name in sorted(explicit):
        yield ("feature", name, "explicit", tuple(explicit[name]))
    referenced = {
        item.removeprefix("dep:")
        for values in explicit.values()
        for item in values
        if item.startswith("dep:")
    }
    implicit = sorted(
        {
            dep.alias or dep.name
            for dep in project.dependencies
            if dep.optional
        }
        - referenced
        - set(explicit)
    )
    for name in implicit:
        yield ("feature", name, "implicit", (f"dep:{name}",))


def _target_detail(spec: TargetSpec) -> tuple[str, ...]:
    detail: list[str] = []
    if spec.path is not None:
        detail.append(f"path={spec.path}")
    detail.extend(f"crate-type={crate_type}" for crate_type in spec.crate_types)
    detail.extend(f"required-feature={feature}" for feature in spec.required_features)
    if spec.discovered:
        detail.append("auto-discovered")
    return tuple(detail)


def _targets(project: Project) -> Iterator[_Entry]:
    for spec in all_targets(project):
        yield ("target", spec.name, spec.kind, _target_detail(spec))


def _platforms(project: Project) -> Iterator[_Entry]:
    by_platform: dict[str, list[str]] = {}
    for dep in project.dependencies:
        if dep.target is not None:
            by_platform.setdefault(dep.target, []).append(dep.name)
    for platform, names in by_platform.items():
        yield ("platform", platform, "dependencies", tuple(dict.fromkeys(names)))
    for triple in project.docs_rs_targets:
        yield ("platform", triple, "docs.rs", ())


def _render(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return encode_json(value, sort_keys=True).decode("utf-8")


def _profiles(project: Project) -> Iterator[_Entry]:
    profiles: Mapping[str, Mapping[str, object]] = project.profiles
    for profile in sorted(profiles):
        settings = profiles[profile]
        for key in sorted(settings):
            yield ("profile", f"{profile}.{key}", _render(settings[key]), ())


__all__ = ["BuildExtractor"]
