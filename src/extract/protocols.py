"""Extractor protocol contracts."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import ExtractedRow


class LocalExtractorPort(Protocol):
    """Filesystem-bound extractor; runs in a worker thread."""

    @property
    def phase(self) -> ExtractionPhase:
        """Return the phase this extractor produces rows for."""
        ...

    def extract(self, target: ExtractionTarget) -> Sequence[ExtractedRow]:
        """Return the rows for one target."""
        ...


class NetworkExtractorPort(Protocol):
    """Registry-bound extractor; runs as a coroutine on the shared client."""

    @property
    def phase(self) -> ExtractionPhase:
        """Return the phase this extractor produces rows for."""
        ...

    async def extract(self, target: ExtractionTarget) -> Sequence[ExtractedRow]:
        """Return the rows for one target."""
        ...


type ExtractorPort = LocalExtractorPort | NetworkExtractorPort


__all__ = ["ExtractorPort", "LocalExtractorPort", "NetworkExtractorPort"]
