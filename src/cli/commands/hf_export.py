"""``hf-export`` command: extract a Cargo project into a Parquet dataset."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from cyclopts import Group, Parameter, validators

from cli.config_loader import RunContext
from cli.config_models import RootConfig
from cli.result import CliResult
from extraction.contracts import DEFAULT_OUTPUT_DIR, ExtractionRequest
from extraction.errors import Cargo2HfError, ConfigurationError
from obs.otel import SCOPE_CLI, stage_span
from schema_spec.phases import DEFAULT_PHASES_ARG, parse_phases

logger = logging.getLogger(__name__)

REPORT_FILE_NAME = "extraction_report.json"
NO_VALID_PHASES = "No valid phases specified."
FINISHED = "Finished Hugging Face dataset extraction"

output_group = Group("Output", help="Where the dataset and run report go.", sort_key=1)
scope_group = Group(
    "Scope", help="Which phases run and how far dependencies are followed.", sort_key=2
)
execution_group = Group("Execution", help="Extraction parallelism.", sort_key=3)


@dataclass(frozen=True)
class HfExportOptions:
    """Options of the ``hf-export`` command."""

    include_deps: Annotated[
        bool | None,
        Parameter(
            name="--include-deps",
            help="Also extract every resolvable direct and transitive dependency.",
            group=scope_group,
        ),
    ] = None
    phases: Annotated[
        str | None,
        Parameter(
            name="--phases",
            help=f"Comma-separated phases to run. Defaults to {DEFAULT_PHASES_ARG}.",
            group=scope_group,
        ),
    ] = None
    max_depth: Annotated[
        int | None,
        Parameter(
            name="--max-depth",
            help="Stop following dependencies below this depth (root is 0).",
            validator=validators.Number(gte=0),
            group=scope_group,
        ),
    ] = None
    max_concurrency: Annotated[
        int | None,
        Parameter(
            name="--max-concurrency",
            help="Maximum concurrent filesystem extractions.",
            validator=validators.Number(gt=0),
            group=execution_group,
        ),
    ] = None
    report: Annotated[
        bool | None,
        Parameter(
            name="--report",
            help=f"Write the run report to <OUTPUT>/{REPORT_FILE_NAME}.",
            group=output_group,
        ),
    ] = None


_DEFAULT_OPTIONS = HfExportOptions()


def hf_export_command(
    project_path: Annotated[
        Path,
        Parameter(help="Root directory of the Cargo project (holds Cargo.toml)."),
    ],
    output: Annotated[
        Path | None,
        Parameter(
            help=f"Output directory for the phase files. Defaults to {DEFAULT_OUTPUT_DIR}.",
            env_var="CARGO2HF_OUTPUT_DIR",
            group=output_group,
        ),
    ] = None,
    options: Annotated[HfExportOptions, Parameter(name="*")] = _DEFAULT_OPTIONS,
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Extract a Cargo project into a Hugging Face style Parquet dataset.

    Returns
    -------
    CliResult
        Exit code 0 on success (also when some phases or targets failed);
        1 on fatal errors.
    """
    from extraction.orchestrator import run_extraction

    config = run_context.config if run_context is not None else RootConfig()
    request = build_request(project_path, output, options, config=config, run_context=run_context)
    if not request.phases:
        return CliResult.failure(NO_VALID_PHASES)

    start = time.perf_counter()
    try:
        with stage_span(
            "cli.hf_export",
            stage="hf_export",
            scope_name=SCOPE_CLI,
            attributes={"phases": [phase.value for phase in request.phases]},
        ):
            report = run_extraction(request)
    except ConfigurationError as exc:
        logger.debug("Configuration rejected", exc_info=True)
        return CliResult.from_exception(exc)
    except Cargo2HfError as exc:
        logger.debug("Extraction aborted", exc_info=True)
        return CliResult.from_exception(exc, summary=f"Extraction failed: {exc}")
    duration_ms = (time.perf_counter() - start) * 1000.0

    artifacts = {record.phase: Path(record.path) for record in report.files}
    if request.report_path is not None:
        artifacts["report"] = Path(request.report_path)
    return CliResult.success(
        f"{FINISHED} ({report.status.value}) into {request.output_dir}",
        warnings=report.failure_summary(),
        artifacts=artifacts,
        duration_ms=duration_ms,
    )


def build_request(
    project_path: Path,
    output: Path | None,
    options: HfExportOptions,
    *,
    config: RootConfig,
    run_context: RunContext | None = None,
) -> ExtractionRequest:
    """Merge command-line values over configuration into an extraction request.

    Returns
    -------
    ExtractionRequest
        Request with phases already parsed; ``phases`` is empty when every
        token was rejected.
    """
    output_dir = output or (Path(config.output_dir) if config.output_dir else None)
    output_dir = output_dir or Path(DEFAULT_OUTPUT_DIR)
    raw_phases = options.phases if options.phases is not None else config.phases
    phases, _dropped = parse_phases(raw_phases if raw_phases is not None else DEFAULT_PHASES_ARG)
    include_deps = options.include_deps
    if include_deps is None:
        include_deps = bool(config.include_deps)
    write_report = options.report if options.report is not None else bool(config.report)

    run_options = config.extraction_options()
    if options.max_depth is not None:
        run_options["max_depth"] = options.max_depth
    if options.max_concurrency is not None:
        run_options["max_concurrency"] = options.max_concurrency

    return ExtractionRequest(
        project_path=str(project_path),
        output_dir=str(output_dir),
        phases=phases,
        include_deps=include_deps,
        options=run_options,
        run_id=run_context.run_id if run_context is not None else None,
        report_path=str(output_dir / REPORT_FILE_NAME) if write_report else None,
    )


__all__ = ["HfExportOptions", "build_request", "hf_export_command"]
