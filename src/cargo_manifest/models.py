"""Typed views of a parsed Cargo manifest."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class DependencyKind(StrEnum):
    """Dependency table a requirement was declared in."""

    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"


class SourceKind(StrEnum):
    """Where a dependency is fetched from."""

    REGISTRY = "registry"
    PATH = "path"
    GIT = "git"


DEPENDENCY_TABLES: dict[str, DependencyKind] = {
    "dependencies": DependencyKind.NORMAL,
    "dev-dependencies": DependencyKind.DEV,
    "dev_dependencies": DependencyKind.DEV,
    "build-dependencies": DependencyKind.BUILD,
    "build_dependencies": DependencyKind.BUILD,
}


@dataclass(frozen=True)
class DeclaredDependency:
    """One requirement from a ``[*dependencies]`` table."""

    name: str
    version_req: str | None
    kind: DependencyKind
    source_kind: SourceKind = SourceKind.REGISTRY
    alias: str | None = None
    optional: bool = False
    default_features: bool = True
    features: tuple[str, ...] = ()
    target: str | None = None
    path: str | None = None
    git: str | None = None
    registry: str | None = None

    @property
    def source_location(self) -> str | None:
        """Return the path, git URL or alternate registry name, if any."""
        if self.source_kind is SourceKind.PATH:
            return self.path
        if self.source_kind is SourceKind.GIT:
            return self.git
        return self.registry


@dataclass(frozen=True)
class TargetSpec:
    """A compilation target declared in the manifest or discovered on disk."""

    kind: str
    name: str
    path: str | None = None
    crate_types: tuple[str, ...] = ()
    required_features: tuple[str, ...] = ()
    discovered: bool = False


@dataclass(frozen=True)
class Project:
    """A Cargo package loaded from ``Cargo.toml``.

    Identity is ``(name, version)``; instances are immutable once loaded.
    """

    root: Path
    manifest_path: Path
    name: str
    version: str
    authors: tuple[str, ...] = ()
    license: str | None = None
    license_file: str | None = None
    description: str | None = None
    keywords: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    edition: str | None = None
    rust_version: str | None = None
    repository: str | None = None
    homepage: str | None = None
    documentation: str | None = None
    readme: str | None = None
    publish: bool = True
    links: str | None = None
    build: str | bool | None = None
    auto_targets: frozenset[str] = frozenset({"lib", "bin", "example", "test", "bench"})
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    dependencies: tuple[DeclaredDependency, ...] = ()
    features: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    targets: tuple[TargetSpec, ...] = ()
    profiles: Mapping[str, Mapping[str, object]] = field(default_factory=dict)
    docs_rs_targets: tuple[str, ...] = ()
    workspace_root: Path | None = None

    @property
    def identity(self) -> tuple[str, str]:
        """Return the ``(name, version)`` identity pair."""
        return (self.name, self.version)

    @property
    def label(self) -> str:
        """Return ``name@version`` for logs and report entries."""
        return f"{self.name}@{self.version}"

    def dependencies_of_kind(self, *kinds: DependencyKind) -> tuple[DeclaredDependency, ...]:
        """Return declared dependencies restricted to the given kinds."""
        return tuple(dep for dep in self.dependencies if dep.kind in kinds)


__all__ = [
    "DEPENDENCY_TABLES",
    "DeclaredDependency",
    "DependencyKind",
    "Project",
    "SourceKind",
    "TargetSpec",
]
