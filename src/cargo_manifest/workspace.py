"""Cargo workspace discovery and inheritance."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import msgspec

from cargo_manifest.errors import ManifestError
from utils.file_io import read_toml

INHERITABLE_PACKAGE_KEYS = frozenset(
    {
        "authors",
        "categories",
        "description",
        "documentation",
        "edition",
        "exclude",
        "homepage",
        "include",
        "keywords",
        "license",
        "license-file",
        "publish",
        "readme",
        "repository",
        "rust-version",
        "version",
    }
)


@dataclass(frozen=True)
class Workspace:
    """The ``[workspace]`` table of an ancestor manifest."""

    root: Path
    package: Mapping[str, object] = field(default_factory=dict)
    dependencies: Mapping[str, object] = field(default_factory=dict)

    def inherited_field(self, key: str, *, member_manifest: Path) -> object:
        """Return a ``[workspace.package]`` value for ``key = { workspace = true }``.

        Raises
        ------
        ManifestError
            Raised when the workspace does not define the key.
        """
        if key not in self.package:
            msg = f"`package.{key}` inherits from the workspace, which does not define it"
            raise ManifestError(member_manifest, msg)
        return self.package[key]

    def rebase(self, relative: str, *, member_root: Path) -> str:
        """Re-express a workspace-relative path relative to a member crate."""
        return Path(os.path.relpath(self.root / relative, member_root)).as_posix()


def load_workspace(manifest_path: Path) -> Workspace | None:
    """Return the workspace declared by ``manifest_path``, if it declares one.

    Returns
    -------
    Workspace | None
        Parsed workspace or None when the manifest has no ``[workspace]`` table.

    Raises
    ------
    ManifestError
        Raised when the manifest cannot be read or parsed.
    """
    try:
        raw = read_toml(manifest_path)
    except (OSError, TypeError, msgspec.DecodeError) as exc:
        raise ManifestError(manifest_path, f"unreadable manifest ({exc})") from exc
    table = raw.get("workspace")
    if not isinstance(table, dict):
        return None
    package = table.get("package")
    dependencies = table.get("dependencies")
    return Workspace(
        root=manifest_path.parent,
        package=package if isinstance(package, dict) else {},
        dependencies=dependencies if isinstance(dependencies, dict) else {},
    )


def find_workspace(crate_root: Path, *, explicit: str | None = None) -> Workspace | None:
    """Locate the workspace that owns ``crate_root``.

    ``explicit`` is the ``package.workspace`` key, a path to the workspace root.
    Otherwise ancestors are searched, nearest first, stopping at the filesystem root.

    Returns
    -------
    Workspace | None
        The owning workspace or None for standalone crates.
    """
    if explicit is not None:
        return load_workspace((crate_root / explicit).resolve() / "Cargo.toml")
    for directory in (crate_root, *crate_root.parents):
        candidate = directory / "Cargo.toml"
        if not candidate.is_file():
            continue
        workspace = load_workspace(candidate)
        if workspace is not None:
            return workspace
    return None


__all__ = ["INHERITABLE_PACKAGE_KEYS", "Workspace", "find_workspace", "load_workspace"]
