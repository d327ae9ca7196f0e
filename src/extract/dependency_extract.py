"""Declared dependency edge rows."""

from __future__ import annotations

from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import DependencyRow


class DependencyExtractor:
    """Emit one :class:`DependencyRow` per declared dependency, in manifest order.

    Rows come from the manifest alone, so a dependency that failed to resolve
    still has its edge recorded here.
    """

    phase = ExtractionPhase.DEPENDENCIES

    def extract(self, target: ExtractionTarget) -> list[DependencyRow]:
        project = target.project
        return [
            DependencyRow(
                source_name=project.name,
                source_version=project.version,
                dependency_name=dep.name,
                version_req=dep.version_req,
                kind=dep.kind.value,
                optional=dep.optional,
                default_features=dep.default_features,
                features=dep.features,
                target=dep.target,
                source_kind=dep.source_kind.value,
                source_location=dep.source_location,
                alias=dep.alias,
            )
            for dep in project.dependencies
        ]


__all__ = ["DependencyExtractor"]
