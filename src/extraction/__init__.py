"""Standalone extraction orchestration."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

from extraction.contracts import DEFAULT_OUTPUT_DIR, ExtractionRequest
from extraction.errors import (
    Cargo2HfError,
    ConfigurationError,
    EmptyExtractionError,
    ExtractionError,
    ResolutionError,
    SchemaViolationError,
    WriteError,
)
from extraction.options import ExtractionRunOptions, normalize_extraction_options
from extraction.report import ExtractionReport, RunStatus, load_report, write_report

_LAZY_EXPORTS: dict[str, tuple[str, str]] = {
    "ExtractionOrchestrator": ("extraction.orchestrator", "ExtractionOrchestrator"),
    "run_extraction": ("extraction.orchestrator", "run_extraction"),
}

if TYPE_CHECKING:
    from extraction.orchestrator import ExtractionOrchestrator, run_extraction


def __getattr__(name: str) -> object:
    export = _LAZY_EXPORTS.get(name)
    if export is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_name, attr = export
    value = getattr(importlib.import_module(module_name), attr)
    globals()[name] = value
    return value


__all__ = [
    "DEFAULT_OUTPUT_DIR",
    "Cargo2HfError",
    "ConfigurationError",
    "EmptyExtractionError",
    "ExtractionError",
    "ExtractionOrchestrator",
    "ExtractionReport",
    "ExtractionRequest",
    "ExtractionRunOptions",
    "ResolutionError",
    "RunStatus",
    "SchemaViolationError",
    "WriteError",
    "load_report",
    "normalize_extraction_options",
    "run_extraction",
    "write_report",
]
