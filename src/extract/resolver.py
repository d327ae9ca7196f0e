"""Breadth-first resolution of a crate's dependency graph."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from cargo_manifest.errors import DependencyNotFoundError, ManifestError
from cargo_manifest.lockfile import CargoLock, find_lockfile, load_lockfile
from cargo_manifest.locator import DependencyLocator
from cargo_manifest.models import DeclaredDependency, DependencyKind, Project
from cargo_manifest.parse import load_project
from extract.targets import ExtractionTarget
from extraction.errors import ResolutionError

logger = logging.getLogger(__name__)

TRANSITIVE_KINDS = (DependencyKind.NORMAL, DependencyKind.BUILD)

type ProjectLoader = Callable[[Path], Project]


@dataclass(frozen=True)
class ResolvedDependency:
    """A project reached from the root through declared dependencies."""

    project: Project
    depth: int
    via: tuple[str, ...]

    def as_target(self) -> ExtractionTarget:
        """Return the extraction target for this dependency."""
        return ExtractionTarget(project=self.project, depth=self.depth, via=self.via)


@dataclass(frozen=True)
class ResolutionResult:
    """Resolved dependencies in breadth-first order plus recorded failures."""

    resolved: tuple[ResolvedDependency, ...] = ()
    failures: tuple[ResolutionError, ...] = ()

    def targets(self, root: Project) -> list[ExtractionTarget]:
        """Return the root target followed by every resolved dependency."""
        return [
            ExtractionTarget(project=root, is_root=True),
            *(node.as_target() for node in self.resolved),
        ]


class DependencyGraphResolver:
    """Resolve direct and transitive dependencies of a root project.

    The root expands every dependency kind; other nodes expand only normal and
    build dependencies. Optional dependencies of non-root nodes are followed
    only when the lockfile records them for that node. A visited set keyed by
    ``(name, version)`` and seeded with the root makes cyclic and diamond
    graphs terminate with each identity resolved once.
    """

    def __init__(
        self,
        locator: DependencyLocator | None = None,
        *,
        max_depth: int | None = None,
        loader: ProjectLoader = load_project,
        registry_roots: Sequence[Path] | None = None,
    ) -> None:
        self._locator = locator
        self._registry_roots = registry_roots
        self.max_depth = max_depth
        self._loader = loader

    def resolve(self, root: Project, *, include_deps: bool) -> ResolutionResult:
        """Resolve the dependency graph of ``root``.

        Returns
        -------
        ResolutionResult
            Empty when ``include_deps`` is False; no I/O happens in that case.
        """
        if not include_deps:
            return ResolutionResult()
        locator = self._locator or self._default_locator(root)
        lockfile = locator.lockfile
        visited: set[tuple[str, str]] = {root.identity}
        resolved: list[ResolvedDependency] = []
        failures: dict[tuple[str, str], ResolutionError] = {}
        queue: deque[tuple[Project, int, tuple[str, ...]]] = deque([(root, 0, ())])
        while queue:
            parent, depth, via = queue.popleft()
            if self.max_depth is not None and depth >= self.max_depth:
                continue
            chain = (*via, parent.label)
            for dependency in _expandable(parent, is_root=depth == 0, lockfile=lockfile):
                try:
                    project = self._load(locator, parent, dependency)
                except ResolutionError as exc:
                    key = (dependency.name, parent.label)
                    if key not in failures:
                        logger.warning("%s", exc)
                        failures[key] = exc
                    continue
                if project.identity in visited:
                    continue
                visited.add(project.identity)
                node = ResolvedDependency(project=project, depth=depth + 1, via=chain)
                resolved.append(node)
                logger.debug("Resolved %s at depth %d via %s", project.label, node.depth, parent.label)
                queue.append((project, node.depth, chain))
        return ResolutionResult(resolved=tuple(resolved), failures=tuple(failures.values()))

    def _default_locator(self, root: Project) -> DependencyLocator:
        lock_path = find_lockfile(root.root, workspace_root=root.workspace_root)
        lockfile: CargoLock | None = None
        if lock_path is not None:
            try:
                lockfile = load_lockfile(lock_path)
            except ManifestError as exc:
                logger.warning("Ignoring lockfile: %s", exc)
        else:
            logger.info("No Cargo.lock found for %s; registry dependencies cannot be pinned", root.label)
        return DependencyLocator(lockfile, registry_roots=self._registry_roots)

    def _load(
        self,
        locator: DependencyLocator,
        parent: Project,
        dependency: DeclaredDependency,
    ) -> Project:
        try:
            path = locator.locate(parent, dependency)
            return self._loader(path)
        except (DependencyNotFoundError, ManifestError) as exc:
            raise ResolutionError(
                dependency.name,
                exc.reason,
                requirement=dependency.version_req,
                declared_by=parent.label,
            ) from exc


def _expandable(
    parent: Project,
    *,
    is_root: bool,
    lockfile: CargoLock | None,
) -> list[DeclaredDependency]:
    candidates = parent.dependencies if is_root else parent.dependencies_of_kind(*TRANSITIVE_KINDS)
    locked: frozenset[str] | None = None
    selected: list[DeclaredDependency] = []
    seen: set[tuple[str, str | None]] = set()
    for dependency in candidates:
        if dependency.optional and not is_root:
            if locked is None:
                locked = (
                    lockfile.locked_dependencies(parent.name, parent.version)
                    if lockfile is not None
                    else frozenset()
                )
            if dependency.name not in locked:
                continue
        key = (dependency.name, dependency.source_location)
        if key in seen:
            continue
        seen.add(key)
        selected.append(dependency)
    return selected


__all__ = [
    "DependencyGraphResolver",
    "ResolutionResult",
    "ResolvedDependency",
]
