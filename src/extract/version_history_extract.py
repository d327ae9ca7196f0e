"""Published version history rows."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from crates_registry.client import CratesIoClient
from crates_registry.models import CrateVersion, as_utc
from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import VersionHistoryRow

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _chronological_key(entry: tuple[int, CrateVersion]) -> tuple[datetime, int]:
    index, version = entry
    # The registry lists newest first; a higher index is older.
    return (as_utc(version.created_at) or _EPOCH, -index)


class VersionHistoryExtractor:
    """Emit the published versions of a crate, oldest first.

    Crate-scoped: the orchestrator hands it only the first target of each
    crate name. Unpublished crates yield no rows.
    """

    phase = ExtractionPhase.VERSION_HISTORY

    def __init__(self, client: CratesIoClient) -> None:
        self.client = client

    async def extract(self, target: ExtractionTarget) -> list[VersionHistoryRow]:
        project = target.project
        if not project.publish:
            logger.debug("Skipping version history for unpublished %s", target.label)
            return []
        versions = await self.client.versions(project.name)
        ordered = sorted(enumerate(versions), key=_chronological_key)
        return [
            VersionHistoryRow(
                crate_name=project.name,
                version=version.num,
                published_at=as_utc(version.created_at),
                yanked=version.yanked,
                downloads=version.downloads,
                license=version.license,
                crate_size=version.crate_size,
                rust_version=version.rust_version,
            )
            for _, version in ordered
        ]


__all__ = ["VersionHistoryExtractor"]
