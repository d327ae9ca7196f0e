"""Cargo target auto-discovery."""

from __future__ import annotations

from pathlib import Path

from cargo_manifest.models import Project, TargetSpec

_TARGET_DIRS: dict[str, str] = {
    "bin": "src/bin",
    "example": "examples",
    "test": "tests",
    "bench": "benches",
}


def _discover_dir(root: Path, kind: str, rel_dir: str) -> list[TargetSpec]:
    directory = root / rel_dir
    if not directory.is_dir():
        return []
    found: list[TargetSpec] = []
    for entry in sorted(directory.iterdir(), key=lambda path: path.name):
        if entry.is_file() and entry.suffix == ".rs":
            found.append(
                TargetSpec(kind=kind, name=entry.stem, path=f"{rel_dir}/{entry.name}", discovered=True)
            )
        elif entry.is_dir() and (entry / "main.rs").is_file():
            found.append(
                TargetSpec(
                    kind=kind,
                    name=entry.name,
                    path=f"{rel_dir}/{entry.name}/main.rs",
                    discovered=True,
                )
            )
    return found


def discover_targets(project: Project) -> list[TargetSpec]:
    """Return targets Cargo would infer from the directory layout.

    Targets already declared in the manifest (same kind and name, or same
    path) are skipped, as are kinds switched off with ``auto*`` keys.

    Returns
    -------
    list[TargetSpec]
        Discovered targets in lib, bin, example, test, bench order.
    """
    root = project.root
    candidates: list[TargetSpec] = []
    if "lib" in project.auto_targets and (root / "src/lib.rs").is_file():
        candidates.append(
            TargetSpec(
                kind="lib",
                name=project.name.replace("-", "_"),
                path="src/lib.rs",
                discovered=True,
            )
        )
    if "bin" in project.auto_targets and (root / "src/main.rs").is_file():
        candidates.append(TargetSpec(kind="bin", name=project.name, path="src/main.rs", discovered=True))
    for kind, rel_dir in _TARGET_DIRS.items():
        if kind in project.auto_targets:
            candidates.extend(_discover_dir(root, kind, rel_dir))
    declared_names = {(target.kind, target.name) for target in project.targets}
    declared_paths = {target.path for target in project.targets if target.path is not None}
    declared_lib = any(target.kind == "lib" for target in project.targets)
    return [
        target
        for target in candidates
        if (target.kind, target.name) not in declared_names
        and target.path not in declared_paths
        and not (target.kind == "lib" and declared_lib)
    ]


def all_targets(project: Project) -> list[TargetSpec]:
    """Return declared targets followed by discovered ones."""
    return [*project.targets, *discover_targets(project)]


__all__ = ["all_targets", "discover_targets"]
