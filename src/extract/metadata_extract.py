"""Package metadata rows."""

from __future__ import annotations

from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import MetadataRow


class MetadataExtractor:
    """Emit one :class:`MetadataRow` per target from its parsed manifest."""

    phase = ExtractionPhase.METADATA

    def extract(self, target: ExtractionTarget) -> list[MetadataRow]:
        project = target.project
        return [
            MetadataRow(
                name=project.name,
                version=project.version,
                authors=project.authors,
                license=project.license,
                description=project.description,
                keywords=project.keywords,
                categories=project.categories,
                edition=project.edition,
                rust_version=project.rust_version,
                repository=project.repository,
                homepage=project.homepage,
                documentation=project.documentation,
                readme=project.readme,
                license_file=project.license_file,
                publish=project.publish,
                manifest_path=project.manifest_path.as_posix(),
                is_root=target.is_root,
                depth=target.depth,
                resolved_via=target.via,
            )
        ]


__all__ = ["MetadataExtractor"]
