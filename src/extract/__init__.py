"""Extraction layer.

Phase extractors turn one :class:`extract.targets.ExtractionTarget` into typed
rows for one phase table.

Exports:
- dependency resolution -> resolved targets (root first)
- metadata -> metadata rows
- dependencies -> declared dependency edges
- source_code -> per-file rows
- build -> build settings
- ecosystem / version_history -> crates.io facts
"""

from __future__ import annotations

from extract.registry_extractors import (
    EXTRACTOR_SPECS,
    ExtractorContext,
    ExtractorSpec,
    build_extractors,
    needs_network,
)
from extract.resolver import DependencyGraphResolver, ResolutionResult, ResolvedDependency
from extract.targets import ExtractionTarget, first_per_crate

__all__ = [
    "EXTRACTOR_SPECS",
    "DependencyGraphResolver",
    "ExtractionTarget",
    "ExtractorContext",
    "ExtractorSpec",
    "ResolutionResult",
    "ResolvedDependency",
    "build_extractors",
    "first_per_crate",
    "needs_network",
]
