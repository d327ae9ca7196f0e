"""Parse ``Cargo.toml`` into :class:`cargo_manifest.models.Project`."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from functools import cached_property
from pathlib import Path

import msgspec

from cargo_manifest.errors import ManifestError
from cargo_manifest.models import (
    DEPENDENCY_TABLES,
    DeclaredDependency,
    DependencyKind,
    Project,
    SourceKind,
    TargetSpec,
)
from cargo_manifest.workspace import INHERITABLE_PACKAGE_KEYS, Workspace, find_workspace
from utils.file_io import PathLike, ensure_path, read_toml

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"
DEFAULT_VERSION = "0.0.0"
_README_CANDIDATES = ("README.md", "README.txt", "README")
_TARGET_ARRAYS = {"bin": "bin", "example": "example", "test": "test", "bench": "bench"}
_AUTO_KEYS = {
    "autolib": "lib",
    "autobins": "bin",
    "autoexamples": "example",
    "autotests": "test",
    "autobenches": "bench",
}


def manifest_path_for(path: PathLike) -> Path:
    """Return the ``Cargo.toml`` path for a crate directory or manifest path."""
    resolved = ensure_path(path)
    if resolved.name == MANIFEST_NAME:
        return resolved
    return resolved / MANIFEST_NAME


def load_project(path: PathLike) -> Project:
    """Load a Cargo package from a crate directory or manifest path.

    Parameters
    ----------
    path
        Crate root directory or ``Cargo.toml`` path.

    Returns
    -------
    Project
        Immutable project view with workspace inheritance applied.

    Raises
    ------
    ManifestError
        Raised when the manifest is missing, malformed, or has no ``[package]``.
    """
    manifest = manifest_path_for(path).resolve()
    if not manifest.is_file():
        raise ManifestError(manifest, "manifest not found")
    try:
        raw = read_toml(manifest)
    except (OSError, TypeError, msgspec.DecodeError) as exc:
        raise ManifestError(manifest, f"unreadable manifest ({exc})") from exc
    project = _ManifestReader(manifest, raw).project()
    logger.debug("Loaded manifest %s as %s", manifest, project.label)
    return project


class _ManifestReader:
    """Single-use reader turning a raw TOML mapping into a Project."""

    def __init__(self, manifest: Path, raw: Mapping[str, object]) -> None:
        self.manifest = manifest
        self.root = manifest.parent
        self.raw = raw
        package = raw.get("package", raw.get("project"))
        if not isinstance(package, dict):
            raise ManifestError(manifest, "no [package] table (virtual workspace manifest?)")
        self.package: Mapping[str, object] = package

    @cached_property
    def workspace(self) -> Workspace | None:
        explicit = self.package.get("workspace")
        return find_workspace(
            self.root,
            explicit=explicit if isinstance(explicit, str) else None,
        )

    def _require_workspace(self, what: str) -> Workspace:
        workspace = self.workspace
        if workspace is None:
            msg = f"{what} inherits from a workspace, but no workspace root was found"
            raise ManifestError(self.manifest, msg)
        return workspace

    def field(self, key: str) -> object:
        value = self.package.get(key)
        if (
            key in INHERITABLE_PACKAGE_KEYS
            and isinstance(value, dict)
            and value.get("workspace") is True
        ):
            workspace = self._require_workspace(f"`package.{key}`")
            inherited = workspace.inherited_field(key, member_manifest=self.manifest)
            if key in {"license-file", "readme"} and isinstance(inherited, str):
                return workspace.rebase(inherited, member_root=self.root)
            return inherited
        return value

    def text(self, key: str) -> str | None:
        value = self.field(key)
        if value is None:
            return None
        if not isinstance(value, str):
            msg = f"`package.{key}` must be a string"
            raise ManifestError(self.manifest, msg)
        return value

    def strings(self, key: str) -> tuple[str, ...]:
        value = self.field(key)
        if value is None:
            return ()
        return _string_tuple(value, manifest=self.manifest, what=f"package.{key}")

    def project(self) -> Project:
        name = self.package.get("name")
        if not isinstance(name, str) or not name:
            raise ManifestError(self.manifest, "`package.name` is required")
        version = self.text("version") or DEFAULT_VERSION
        publish = self.field("publish")
        metadata = self.package.get("metadata")
        return Project(
            root=self.root,
            manifest_path=self.manifest,
            name=name,
            version=version,
            authors=self.strings("authors"),
            license=self.text("license"),
            license_file=self.text("license-file"),
            description=_normalize_description(self.text("description")),
            keywords=self.strings("keywords"),
            categories=self.strings("categories"),
            edition=self.text("edition"),
            rust_version=self.text("rust-version"),
            repository=self.text("repository"),
            homepage=self.text("homepage"),
            documentation=self.text("documentation"),
            readme=self._readme(),
            publish=_publish_flag(publish),
            links=self.text("links"),
            build=self._build_setting(),
            auto_targets=self._auto_targets(),
            include=self.strings("include"),
            exclude=self.strings("exclude"),
            dependencies=self._dependencies(),
            features=self._features(),
            targets=self._targets(name),
            profiles=_mapping_of_mappings(self.raw.get("profile")),
            docs_rs_targets=_docs_rs_targets(metadata),
            workspace_root=self.workspace.root if self.workspace is not None else None,
        )

    def _readme(self) -> str | None:
        value = self.field("readme")
        if value is False:
            return None
        if isinstance(value, str):
            return value
        if value is True:
            return "README.md"
        for candidate in _README_CANDIDATES:
            if (self.root / candidate).is_file():
                return candidate
        return None

    def _build_setting(self) -> str | bool | None:
        value = self.package.get("build")
        if value is None or isinstance(value, (str, bool)):
            return value
        raise ManifestError(self.manifest, "`package.build` must be a string or boolean")

    def _auto_targets(self) -> frozenset[str]:
        return frozenset(
            kind for key, kind in _AUTO_KEYS.items() if self.package.get(key, True) is not False
        )

    def _features(self) -> dict[str, tuple[str, ...]]:
        table = self.raw.get("features")
        if table is None:
            return {}
        if not isinstance(table, dict):
            raise ManifestError(self.manifest, "[features] must be a table")
        return {
            str(name): _string_tuple(values, manifest=self.manifest, what=f"features.{name}")
            for name, values in table.items()
        }

    def _dependencies(self) -> tuple[DeclaredDependency, ...]:
        declared: list[DeclaredDependency] = []
        declared.extend(self._dependency_tables(self.raw, target=None))
        platform_tables = self.raw.get("target")
        if isinstance(platform_tables, dict):
            for spec, tables in platform_tables.items():
                if isinstance(tables, dict):
                    declared.extend(self._dependency_tables(tables, target=str(spec)))
        return tuple(declared)

    def _dependency_tables(
        self,
        container: Mapping[str, object],
        *,
        target: str | None,
    ) -> list[DeclaredDependency]:
        declared: list[DeclaredDependency] = []
        for table_name, kind in DEPENDENCY_TABLES.items():
            table = container.get(table_name)
            if table is None:
                continue
            if not isinstance(table, dict):
                msg = f"[{table_name}] must be a table"
                raise ManifestError(self.manifest, msg)
            declared.extend(
                self._dependency(key, spec, kind=kind, target=target)
                for key, spec in table.items()
            )
        return declared

    def _dependency(
        self,
        key: str,
        spec: object,
        *,
        kind: DependencyKind,
        target: str | None,
    ) -> DeclaredDependency:
        detail = self._dependency_detail(key, spec)
        package = detail.get("package")
        name = package if isinstance(package, str) else key
        features = detail.get("features", ())
        default_features = detail.get("default-features", detail.get("default_features", True))
        version_req = detail.get("version")
        source_kind = SourceKind.REGISTRY
        if "path" in detail:
            source_kind = SourceKind.PATH
        elif "git" in detail:
            source_kind = SourceKind.GIT
        return DeclaredDependency(
            name=name,
            alias=key if name != key else None,
            version_req=version_req if isinstance(version_req, str) else None,
            kind=kind,
            source_kind=source_kind,
            optional=detail.get("optional") is True,
            default_features=default_features is not False,
            features=_string_tuple(features, manifest=self.manifest, what=f"{key}.features"),
            target=target,
            path=_optional_str(detail.get("path")),
            git=_optional_str(detail.get("git")),
            registry=_optional_str(detail.get("registry")),
        )

    def _dependency_detail(self, key: str, spec: object) -> dict[str, object]:
        if isinstance(spec, str):
            return {"version": spec}
        if not isinstance(spec, dict):
            msg = f"dependency `{key}` must be a version string or a table"
            raise ManifestError(self.manifest, msg)
        if spec.get("workspace") is not True:
            return dict(spec)
        workspace = self._require_workspace(f"dependency `{key}`")
        base = workspace.dependencies.get(key)
        if base is None:
            msg = f"dependency `{key}` is not declared in [workspace.dependencies]"
            raise ManifestError(self.manifest, msg)
        detail: dict[str, object] = {"version": base} if isinstance(base, str) else dict(base)
        if isinstance(detail.get("path"), str):
            detail["path"] = workspace.rebase(str(detail["path"]), member_root=self.root)
        inherited_features = _string_tuple(
            detail.get("features", ()), manifest=self.manifest, what=f"{key}.features"
        )
        member_features = _string_tuple(
            spec.get("features", ()), manifest=self.manifest, what=f"{key}.features"
        )
        detail["features"] = tuple(dict.fromkeys((*inherited_features, *member_features)))
        if "optional" in spec:
            detail["optional"] = spec["optional"]
        return detail

    def _targets(self, package_name: str) -> tuple[TargetSpec, ...]:
        targets: list[TargetSpec] = []
        lib = self.raw.get("lib")
        if isinstance(lib, dict):
            crate_types = _string_tuple(
                lib.get("crate-type", lib.get("crate_type", ())),
                manifest=self.manifest,
                what="lib.crate-type",
            )
            if lib.get("proc-macro") is True or lib.get("proc_macro") is True:
                crate_types = ("proc-macro",)
            targets.append(
                TargetSpec(
                    kind="lib",
                    name=_optional_str(lib.get("name")) or package_name.replace("-", "_"),
                    path=_optional_str(lib.get("path")) or "src/lib.rs",
                    crate_types=crate_types,
                )
            )
        for key, kind in _TARGET_ARRAYS.items():
            entries = self.raw.get(key)
            if entries is None:
                continue
            if not isinstance(entries, list):
                msg = f"[[{key}]] must be an array of tables"
                raise ManifestError(self.manifest, msg)
            for entry in entries:
                if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                    msg = f"every [[{key}]] entry needs a `name`"
                    raise ManifestError(self.manifest, msg)
                targets.append(
                    TargetSpec(
                        kind=kind,
                        name=entry["name"],
                        path=_optional_str(entry.get("path")),
                        required_features=_string_tuple(
                            entry.get("required-features", ()),
                            manifest=self.manifest,
                            what=f"{key}.required-features",
                        ),
                    )
                )
        return tuple(targets)


def _string_tuple(value: object, *, manifest: Path, what: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        msg = f"`{what}` must be an array of strings"
        raise ManifestError(manifest, msg)
    if not all(isinstance(item, str) for item in value):
        msg = f"`{what}` must be an array of strings"
        raise ManifestError(manifest, msg)
    return tuple(value)


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _normalize_description(value: str | None) -> str | None:
    if value is None:
        return None
    collapsed = " ".join(value.split())
    return collapsed or None


def _publish_flag(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, list):
        return bool(value)
    return True


def _mapping_of_mappings(value: object) -> dict[str, dict[str, object]]:
    if not isinstance(value, dict):
        return {}
    return {str(key): dict(inner) for key, inner in value.items() if isinstance(inner, dict)}


def _docs_rs_targets(metadata: object) -> tuple[str, ...]:
    if not isinstance(metadata, dict):
        return ()
    docs_rs = metadata.get("docs.rs", metadata.get("docs", {}))
    if isinstance(docs_rs, dict) and "rs" in docs_rs and isinstance(docs_rs["rs"], dict):
        docs_rs = docs_rs["rs"]
    if not isinstance(docs_rs, dict):
        return ()
    targets = docs_rs.get("targets")
    if isinstance(targets, list):
        return tuple(str(item) for item in targets)
    default_target = docs_rs.get("default-target")
    if isinstance(default_target, str):
        return (default_target,)
    return ()


__all__ = ["DEFAULT_VERSION", "MANIFEST_NAME", "load_project", "manifest_path_for"]
