"""Extraction phase identifiers and ``--phases`` parsing."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum

logger = logging.getLogger(__name__)


class ExtractionPhase(StrEnum):
    """A unit of extraction; each phase owns one schema and one output file."""

    METADATA = "metadata"
    DEPENDENCIES = "dependencies"
    SOURCE_CODE = "source_code"
    BUILD = "build"
    ECOSYSTEM = "ecosystem"
    VERSION_HISTORY = "version_history"

    @property
    def file_name(self) -> str:
        """Return the Parquet file name for this phase."""
        return f"{self.value}.parquet"


ALL_PHASES: tuple[ExtractionPhase, ...] = tuple(ExtractionPhase)
DEFAULT_PHASES_ARG = ",".join(phase.value for phase in ALL_PHASES)


def parse_phases(value: str | Iterable[str]) -> tuple[tuple[ExtractionPhase, ...], tuple[str, ...]]:
    """Parse a comma-separated phase list.

    Tokens are trimmed; unknown or empty tokens are dropped, duplicates keep
    their first position.

    Parameters
    ----------
    value
        Either the raw ``--phases`` string or an iterable of tokens.

    Returns
    -------
    tuple[tuple[ExtractionPhase, ...], tuple[str, ...]]
        Accepted phases in input order and the rejected non-empty tokens.
    """
    tokens = value.split(",") if isinstance(value, str) else list(value)
    accepted: list[ExtractionPhase] = []
    dropped: list[str] = []
    for raw in tokens:
        token = raw.strip()
        if not token:
            continue
        try:
            phase = ExtractionPhase(token)
        except ValueError:
            dropped.append(token)
            continue
        if phase not in accepted:
            accepted.append(phase)
    if dropped:
        logger.warning("Ignoring unknown phases: %s", ", ".join(dropped))
    return tuple(accepted), tuple(dropped)


__all__ = [
    "ALL_PHASES",
    "DEFAULT_PHASES_ARG",
    "ExtractionPhase",
    "parse_phases",
]
