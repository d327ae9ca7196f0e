"""Request envelope for extraction runs."""

from __future__ import annotations

from collections.abc import Mapping

import msgspec

from extraction.options import ExtractionRunOptions
from schema_spec.phases import ExtractionPhase

DEFAULT_OUTPUT_DIR = "hf-dataset-output"


class ExtractionRequest(msgspec.Struct, frozen=True):
    """What to extract, from where, and where to write it."""

    project_path: str
    output_dir: str = DEFAULT_OUTPUT_DIR
    phases: tuple[ExtractionPhase, ...] = ()
    include_deps: bool = False
    options: ExtractionRunOptions | Mapping[str, object] | None = None
    run_id: str | None = None
    report_path: str | None = None


__all__ = ["DEFAULT_OUTPUT_DIR", "ExtractionRequest"]
