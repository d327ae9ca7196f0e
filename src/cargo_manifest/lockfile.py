"""``Cargo.lock`` decoding and version lookup."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import msgspec

from cargo_manifest.errors import ManifestError
from serde_msgspec import StructBaseCompat

LOCKFILE_NAME = "Cargo.lock"
CRATES_IO_SOURCE = "registry+https://github.com/rust-lang/crates.io-index"


class LockedPackage(StructBaseCompat, frozen=True):
    """A ``[[package]]`` entry of ``Cargo.lock``."""

    name: str
    version: str
    source: str | None = None
    checksum: str | None = None
    dependencies: tuple[str, ...] = ()

    @property
    def is_registry(self) -> bool:
        """Return True when the package was fetched from a registry."""
        return self.source is not None and self.source.startswith(("registry+", "sparse+"))

    @property
    def is_git(self) -> bool:
        """Return True when the package was fetched from a git repository."""
        return self.source is not None and self.source.startswith("git+")

    def dependency_names(self) -> tuple[str, ...]:
        """Return the package names referenced in ``dependencies``.

        Entries look like ``name``, ``name version`` or ``name version (source)``.
        """
        return tuple(entry.split(" ", 1)[0] for entry in self.dependencies)


class CargoLock(StructBaseCompat, frozen=True):
    """Decoded ``Cargo.lock`` with name-indexed lookups."""

    version: int | None = None
    package: tuple[LockedPackage, ...] = ()

    def __iter__(self) -> Iterator[LockedPackage]:
        return iter(self.package)

    def packages_named(self, name: str) -> tuple[LockedPackage, ...]:
        """Return all locked packages for ``name`` (multiple majors may coexist)."""
        return tuple(pkg for pkg in self.package if pkg.name == name)

    def find(self, name: str, version: str | None = None) -> LockedPackage | None:
        """Return the locked package for ``name``, optionally pinned to ``version``."""
        candidates = self.packages_named(name)
        if version is not None:
            candidates = tuple(pkg for pkg in candidates if pkg.version == version)
        return candidates[0] if candidates else None

    def locked_dependencies(self, name: str, version: str) -> frozenset[str]:
        """Return the dependency names the lockfile records for one package."""
        locked = self.find(name, version)
        if locked is None:
            return frozenset()
        return frozenset(locked.dependency_names())

    def select(self, name: str, *, parent: tuple[str, str] | None = None) -> LockedPackage | None:
        """Pick the locked package that satisfies ``name`` for ``parent``.

        When ``parent`` is locked, its ``dependencies`` entry disambiguates between
        several locked versions of the same crate. Otherwise the newest entry wins.
        """
        candidates = self.packages_named(name)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]
        if parent is not None:
            owner = self.find(*parent)
            if owner is not None:
                for entry in owner.dependencies:
                    parts = entry.split(" ")
                    if parts[0] == name and len(parts) > 1:
                        pinned = self.find(name, parts[1])
                        if pinned is not None:
                            return pinned
        return max(candidates, key=lambda pkg: _version_key(pkg.version))


def _version_key(version: str) -> tuple[int, ...]:
    core = version.split("+", 1)[0].split("-", 1)[0]
    key: list[int] = []
    for part in core.split("."):
        try:
            key.append(int(part))
        except ValueError:
            key.append(0)
    return tuple(key)


def load_lockfile(path: Path) -> CargoLock:
    """Decode a ``Cargo.lock`` file.

    Raises
    ------
    ManifestError
        Raised when the lockfile cannot be read or decoded.
    """
    try:
        return msgspec.toml.decode(path.read_bytes(), type=CargoLock)
    except (OSError, msgspec.DecodeError) as exc:
        raise ManifestError(path, f"unreadable lockfile ({exc})") from exc


def find_lockfile(crate_root: Path, *, workspace_root: Path | None = None) -> Path | None:
    """Return the lockfile governing a crate, preferring its workspace root."""
    for directory in (workspace_root, crate_root):
        if directory is None:
            continue
        candidate = directory / LOCKFILE_NAME
        if candidate.is_file():
            return candidate
    return None


__all__ = [
    "CRATES_IO_SOURCE",
    "LOCKFILE_NAME",
    "CargoLock",
    "LockedPackage",
    "find_lockfile",
    "load_lockfile",
]
