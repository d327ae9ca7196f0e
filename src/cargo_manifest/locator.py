"""Map declared dependencies to crate roots on the local filesystem."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from cargo_manifest.errors import DependencyNotFoundError
from cargo_manifest.lockfile import CargoLock
from cargo_manifest.models import DeclaredDependency, Project, SourceKind
from utils.env_utils import cargo_home

logger = logging.getLogger(__name__)


class DependencyLocator:
    """Resolve dependency declarations to directories that hold a ``Cargo.toml``.

    Path dependencies are resolved relative to the declaring crate. Registry
    dependencies need an exact version from ``Cargo.lock`` and an unpacked copy
    under ``$CARGO_HOME/registry/src/<index>/<name>-<version>``. Git
    dependencies are never fetched.
    """

    def __init__(
        self,
        lockfile: CargoLock | None,
        *,
        registry_roots: Sequence[Path] | None = None,
    ) -> None:
        self.lockfile = lockfile
        if registry_roots is None:
            registry_roots = default_registry_roots()
        self.registry_roots = tuple(registry_roots)

    def locate(self, parent: Project, dependency: DeclaredDependency) -> Path:
        """Return the crate root for ``dependency`` declared by ``parent``.

        Raises
        ------
        DependencyNotFoundError
            Raised when no local copy of the dependency can be found.
        """
        if dependency.source_kind is SourceKind.PATH:
            return self._locate_path(parent, dependency)
        if dependency.source_kind is SourceKind.GIT:
            msg = f"git dependency ({dependency.git}) is not available locally"
            raise DependencyNotFoundError(dependency.name, msg)
        return self._locate_registry(parent, dependency)

    def locked_version(self, parent: Project, dependency: DeclaredDependency) -> str | None:
        """Return the exact version ``Cargo.lock`` pins for a dependency, if any."""
        if self.lockfile is None:
            return None
        locked = self.lockfile.select(dependency.name, parent=parent.identity)
        return locked.version if locked is not None else None

    def _locate_path(self, parent: Project, dependency: DeclaredDependency) -> Path:
        assert dependency.path is not None
        candidate = (parent.root / dependency.path).resolve()
        if not (candidate / "Cargo.toml").is_file():
            msg = f"path dependency {dependency.path!r} has no Cargo.toml"
            raise DependencyNotFoundError(dependency.name, msg)
        return candidate

    def _locate_registry(self, parent: Project, dependency: DeclaredDependency) -> Path:
        version = self.locked_version(parent, dependency)
        if version is None:
            msg = "no exact version recorded in Cargo.lock"
            raise DependencyNotFoundError(dependency.name, msg)
        dirname = f"{dependency.name}-{version}"
        for root in self.registry_roots:
            candidate = root / dirname
            if (candidate / "Cargo.toml").is_file():
                return candidate
        msg = f"{dirname} is not unpacked in any local registry cache"
        raise DependencyNotFoundError(dependency.name, msg)


def default_registry_roots(home: Path | None = None) -> tuple[Path, ...]:
    """Return the per-index source directories under ``$CARGO_HOME/registry/src``."""
    src = (home or cargo_home()) / "registry" / "src"
    if not src.is_dir():
        logger.debug("No registry source cache at %s", src)
        return ()
    return tuple(sorted(path for path in src.iterdir() if path.is_dir()))


__all__ = ["DependencyLocator", "default_registry_roots"]
