"""Extraction targets handed to phase extractors."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from cargo_manifest.models import Project


@dataclass(frozen=True)
class ExtractionTarget:
    """The root project or one resolved dependency.

    ``via`` is the ``name@version`` chain from the root that first reached the
    target; it is empty for the root.
    """

    project: Project
    depth: int = 0
    via: tuple[str, ...] = ()
    is_root: bool = False

    @property
    def label(self) -> str:
        """Return ``name@version``."""
        return self.project.label

    @property
    def identity(self) -> tuple[str, str]:
        """Return the project's ``(name, version)`` identity."""
        return self.project.identity


def first_per_crate(targets: Iterable[ExtractionTarget]) -> list[ExtractionTarget]:
    """Keep the first target of each crate name, preserving order."""
    seen: set[str] = set()
    selected: list[ExtractionTarget] = []
    for target in targets:
        if target.project.name in seen:
            continue
        seen.add(target.project.name)
        selected.append(target)
    return selected


__all__ = ["ExtractionTarget", "first_per_crate"]
