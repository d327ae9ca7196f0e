"""Extractor registry keyed by extraction phase."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from crates_registry.client import CratesIoClient
from extract.build_extract import BuildExtractor
from extract.dependency_extract import DependencyExtractor
from extract.ecosystem_extract import EcosystemExtractor
from extract.metadata_extract import MetadataExtractor
from extract.protocols import ExtractorPort
from extract.source_extract import SourceCodeExtractor
from extract.version_history_extract import VersionHistoryExtractor
from schema_spec.phases import ExtractionPhase


@dataclass(frozen=True)
class ExtractorContext:
    """Collaborators an extractor may need at construction time."""

    client: CratesIoClient | None = None
    follow_symlinks: bool = False
    output_dir: Path | None = None


def _require_client(context: ExtractorContext, phase: ExtractionPhase) -> CratesIoClient:
    if context.client is None:
        msg = f"The {phase.value} extractor needs a registry client."
        raise ValueError(msg)
    return context.client


@dataclass(frozen=True)
class ExtractorSpec:
    """Programmatic extractor capability spec."""

    phase: ExtractionPhase
    factory: Callable[[ExtractorContext], ExtractorPort]
    network: bool = False
    crate_scoped: bool = False


EXTRACTOR_SPECS: Mapping[ExtractionPhase, ExtractorSpec] = {
    ExtractionPhase.METADATA: ExtractorSpec(
        phase=ExtractionPhase.METADATA,
        factory=lambda _context: MetadataExtractor(),
    ),
    ExtractionPhase.DEPENDENCIES: ExtractorSpec(
        phase=ExtractionPhase.DEPENDENCIES,
        factory=lambda _context: DependencyExtractor(),
    ),
    ExtractionPhase.SOURCE_CODE: ExtractorSpec(
        phase=ExtractionPhase.SOURCE_CODE,
        factory=lambda context: SourceCodeExtractor(
            follow_symlinks=context.follow_symlinks,
            skip_dirs=(context.output_dir,) if context.output_dir is not None else (),
        ),
    ),
    ExtractionPhase.BUILD: ExtractorSpec(
        phase=ExtractionPhase.BUILD,
        factory=lambda _context: BuildExtractor(),
    ),
    ExtractionPhase.ECOSYSTEM: ExtractorSpec(
        phase=ExtractionPhase.ECOSYSTEM,
        factory=lambda context: EcosystemExtractor(
            _require_client(context, ExtractionPhase.ECOSYSTEM)
        ),
        network=True,
    ),
    ExtractionPhase.VERSION_HISTORY: ExtractorSpec(
        phase=ExtractionPhase.VERSION_HISTORY,
        factory=lambda context: VersionHistoryExtractor(
            _require_client(context, ExtractionPhase.VERSION_HISTORY)
        ),
        network=True,
        crate_scoped=True,
    ),
}


def extractor_spec(phase: ExtractionPhase) -> ExtractorSpec:
    """Return the registered spec for a phase."""
    return EXTRACTOR_SPECS[phase]


def build_extractors(
    phases: Iterable[ExtractionPhase],
    context: ExtractorContext,
) -> dict[ExtractionPhase, ExtractorPort]:
    """Instantiate one extractor per requested phase, in request order.

    Returns
    -------
    dict[ExtractionPhase, ExtractorPort]
        Extractors keyed by phase.
    """
    return {phase: EXTRACTOR_SPECS[phase].factory(context) for phase in phases}


def needs_network(phases: Iterable[ExtractionPhase]) -> bool:
    """Return True when any requested phase queries the registry."""
    return any(EXTRACTOR_SPECS[phase].network for phase in phases)


__all__ = [
    "EXTRACTOR_SPECS",
    "ExtractorContext",
    "ExtractorSpec",
    "build_extractors",
    "extractor_spec",
    "needs_network",
]
