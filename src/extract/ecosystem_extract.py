"""crates.io ecosystem context rows."""

from __future__ import annotations

import asyncio
import logging

from crates_registry.client import CratesIoClient
from crates_registry.models import as_utc
from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import EcosystemRow

logger = logging.getLogger(__name__)


class EcosystemExtractor:
    """Emit one :class:`EcosystemRow` per published target.

    Crates with ``publish = false`` are not on the registry and yield no rows.
    """

    phase = ExtractionPhase.ECOSYSTEM

    def __init__(self, client: CratesIoClient) -> None:
        self.client = client

    async def extract(self, target: ExtractionTarget) -> list[EcosystemRow]:
        project = target.project
        if not project.publish:
            logger.debug("Skipping registry lookup for unpublished %s", target.label)
            return []
        crate, reverse_count = await asyncio.gather(
            self.client.crate(project.name),
            self.client.reverse_dependency_count(project.name),
        )
        summary = crate.crate
        version = crate.version(project.version)
        return [
            EcosystemRow(
                crate_name=project.name,
                crate_version=project.version,
                downloads=summary.downloads,
                recent_downloads=summary.recent_downloads,
                version_downloads=version.downloads if version is not None else None,
                reverse_dependency_count=reverse_count,
                categories=crate.category_slugs(),
                keywords=crate.keyword_names(),
                max_version=summary.max_version,
                repository=summary.repository,
                homepage=summary.homepage,
                documentation=summary.documentation,
                created_at=as_utc(summary.created_at),
                updated_at=as_utc(summary.updated_at),
            )
        ]


__all__ = ["EcosystemExtractor"]
