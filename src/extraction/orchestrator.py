"""Extraction orchestrator.

Loads the root crate, optionally resolves its dependency graph, runs every
requested phase over ``root + resolved`` targets and streams the rows into
one Parquet file per phase.

Phases run concurrently. Within a phase, targets run concurrently through a
bounded window that is drained in target order, so rows reach the writer
root first and then in resolution order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from cargo_manifest.errors import ManifestError
from cargo_manifest.locator import default_registry_roots
from cargo_manifest.models import Project
from cargo_manifest.parse import load_project
from crates_registry.client import CratesIoClient
from extract.protocols import ExtractorPort, LocalExtractorPort, NetworkExtractorPort
from extract.registry_extractors import (
    ExtractorContext,
    build_extractors,
    extractor_spec,
    needs_network,
)
from extract.resolver import DependencyGraphResolver, ResolutionResult
from extract.targets import ExtractionTarget, first_per_crate
from extraction.contracts import ExtractionRequest
from extraction.errors import (
    Cargo2HfError,
    ConfigurationError,
    EmptyExtractionError,
    ExtractionError,
    ResolutionError,
)
from extraction.options import ExtractionRunOptions, normalize_extraction_options
from extraction.report import (
    ExtractionReport,
    OutcomeStatus,
    PhaseFileRecord,
    PhaseTargetOutcome,
    ResolutionFailureRecord,
    RunStatus,
    new_run_id,
    outcome_for_error,
    write_report,
)
from obs.otel import SCOPE_EXTRACT, SCOPE_RESOLVE, SCOPE_STORAGE, record_error, stage_span
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import ExtractedRow
from storage.columnar_writer import ColumnarWriter, PhaseFileSummary
from storage.parquet import ParquetWriteOptions
from utils.file_io import file_sha256

logger = logging.getLogger(__name__)

type ClientFactory = Callable[[ExtractionRunOptions], CratesIoClient]

_RECORDED_EXCEPTIONS = (OSError, RuntimeError, TypeError, ValueError, LookupError)


def default_client_factory(options: ExtractionRunOptions) -> CratesIoClient:
    """Build the shared crates.io client for a run."""
    return CratesIoClient.create(
        base_url=options.registry_url,
        user_agent=options.user_agent,
        timeout_s=options.request_timeout_s,
        min_interval_s=options.min_request_interval_s,
    )


@dataclass
class _ExtractionRunState:
    run_id: str
    status: RunStatus = RunStatus.INITIALIZED
    outcomes: list[PhaseTargetOutcome] = field(default_factory=list)
    resolution: ResolutionResult = field(default_factory=ResolutionResult)
    timing: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class _RunResources:
    writer: ColumnarWriter
    fs_slots: asyncio.Semaphore
    network_slots: asyncio.Semaphore
    options: ExtractionRunOptions


class ExtractionOrchestrator:
    """Drive one extraction run from request to finalized phase files.

    Parameters
    ----------
    resolver
        Dependency resolver; built from the run options when omitted.
    client_factory
        Builds the shared registry client. Called at most once per run and
        only when a network phase is requested.
    """

    def __init__(
        self,
        *,
        resolver: DependencyGraphResolver | None = None,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        self._resolver = resolver
        self._client_factory = client_factory
        self._state: _ExtractionRunState | None = None

    @property
    def status(self) -> RunStatus:
        """Return the lifecycle state of the current (or last) run."""
        return self._state.status if self._state is not None else RunStatus.INITIALIZED

    async def run(self, request: ExtractionRequest) -> ExtractionReport:
        """Execute ``request`` and return its report.

        Returns
        -------
        ExtractionReport
            Outcomes of a run that produced at least one successful phase.

        Raises
        ------
        ConfigurationError
            Raised before any output is created when the request is unusable.
        EmptyExtractionError
            Raised when no phase succeeded for any target.
        SchemaViolationError
            Raised when an extractor emits a row that does not fit its schema.
        WriteError
            Raised when a phase file cannot be written.
        """
        state = _ExtractionRunState(run_id=request.run_id or new_run_id())
        self._state = state
        started = time.monotonic()
        try:
            options, root = self._initialize(request)
            targets = await self._resolve(request, root, options, state)
            summaries = await self._extract(request, targets, options, state)
        except BaseException:
            state.status = RunStatus.FAILED
            raise
        state.timing["total"] = time.monotonic() - started
        report = self._build_report(request, root, targets, summaries, state)
        if request.report_path is not None:
            write_report(report, Path(request.report_path))
        if report.status is RunStatus.FAILED:
            msg = "No phase produced data for any target."
            raise EmptyExtractionError(msg)
        return report

    def _initialize(self, request: ExtractionRequest) -> tuple[ExtractionRunOptions, Project]:
        if not request.phases:
            msg = "No valid phases specified."
            raise ConfigurationError(msg)
        try:
            options = normalize_extraction_options(request.options)
        except (TypeError, ValueError) as exc:
            msg = f"Invalid extraction options: {exc}"
            raise ConfigurationError(msg) from exc
        try:
            root = load_project(request.project_path)
        except ManifestError as exc:
            msg = f"Cannot load Cargo project at {request.project_path}: {exc.reason}"
            raise ConfigurationError(msg) from exc
        logger.info(
            "Extracting %s (%s) into %s",
            root.label,
            ", ".join(phase.value for phase in request.phases),
            request.output_dir,
        )
        return options, root

    async def _resolve(
        self,
        request: ExtractionRequest,
        root: Project,
        options: ExtractionRunOptions,
        state: _ExtractionRunState,
    ) -> list[ExtractionTarget]:
        state.status = RunStatus.RESOLVING
        if request.include_deps:
            resolver = self._resolver or DependencyGraphResolver(
                max_depth=options.max_depth,
                registry_roots=default_registry_roots(Path(options.cargo_home))
                if options.cargo_home
                else None,
            )
            start = time.monotonic()
            with stage_span(
                "extraction.resolve",
                stage="resolve",
                scope_name=SCOPE_RESOLVE,
                attributes={"root": root.label, "max_depth": options.max_depth},
            ):
                state.resolution = await asyncio.to_thread(resolver.resolve, root, include_deps=True)
            state.timing["resolve"] = time.monotonic() - start
            for failure in state.resolution.failures:
                record_error("resolve", type(failure).__name__)
            logger.info(
                "Resolved %d dependencies of %s (%d unresolved)",
                len(state.resolution.resolved),
                root.label,
                len(state.resolution.failures),
            )
        return state.resolution.targets(root)

    async def _extract(
        self,
        request: ExtractionRequest,
        targets: Sequence[ExtractionTarget],
        options: ExtractionRunOptions,
        state: _ExtractionRunState,
    ) -> dict[ExtractionPhase, PhaseFileSummary]:
        client, extractors = self._create_extractors(request, options)
        writer = ColumnarWriter(
            request.output_dir,
            batch_size=options.batch_size,
            write_options=ParquetWriteOptions(compression=options.compression),
        )
        resources = _RunResources(
            writer=writer,
            fs_slots=asyncio.Semaphore(options.max_concurrency),
            network_slots=asyncio.Semaphore(options.network_concurrency),
            options=options,
        )
        state.status = RunStatus.EXTRACTING
        try:
            for phase in request.phases:
                writer.open(phase)
            tasks = [
                asyncio.create_task(
                    self._run_phase(phase, extractor, targets, resources, state),
                    name=f"extract-{phase.value}",
                )
                for phase, extractor in extractors.items()
            ]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        except BaseException:
            self._finalize_after_failure(writer)
            raise
        finally:
            if client is not None:
                await client.aclose()
        state.status = RunStatus.WRITING
        start = time.monotonic()
        with stage_span("extraction.finalize", stage="finalize", scope_name=SCOPE_STORAGE):
            summaries = dict(writer.close())
        state.timing["finalize"] = time.monotonic() - start
        return summaries

    def _create_extractors(
        self,
        request: ExtractionRequest,
        options: ExtractionRunOptions,
    ) -> tuple[CratesIoClient | None, dict[ExtractionPhase, ExtractorPort]]:
        phases = request.phases
        try:
            client = self._client_factory(options) if needs_network(phases) else None
            extractors = build_extractors(
                phases,
                ExtractorContext(
                    client=client,
                    follow_symlinks=options.follow_symlinks,
                    output_dir=Path(request.output_dir).resolve(),
                ),
            )
        except (TypeError, ValueError, OSError) as exc:
            msg = f"Failed to create extractor: {exc}"
            raise ConfigurationError(msg) from exc
        return client, extractors

    @staticmethod
    def _finalize_after_failure(writer: ColumnarWriter) -> None:
        try:
            writer.close()
        except Cargo2HfError as exc:
            logger.warning("Phase files could not all be finalized: %s", exc)

    async def _run_phase(
        self,
        phase: ExtractionPhase,
        extractor: ExtractorPort,
        targets: Sequence[ExtractionTarget],
        resources: _RunResources,
        state: _ExtractionRunState,
    ) -> None:
        spec = extractor_spec(phase)
        phase_targets = first_per_crate(targets) if spec.crate_scoped else list(targets)
        window_size = (
            resources.options.network_concurrency
            if spec.network
            else resources.options.max_concurrency
        )
        start = time.monotonic()
        window: deque[tuple[ExtractionTarget, asyncio.Task[Sequence[ExtractedRow]]]] = deque()
        with stage_span(
            f"extraction.{phase.value}",
            stage="extract",
            scope_name=SCOPE_EXTRACT,
            attributes={"phase": phase.value, "targets": len(phase_targets)},
        ):
            try:
                for target in phase_targets:
                    task = asyncio.create_task(
                        self._extract_one(extractor, target, resources, network=spec.network)
                    )
                    window.append((target, task))
                    if len(window) >= window_size:
                        await self._drain(phase, *window.popleft(), resources, state)
                while window:
                    await self._drain(phase, *window.popleft(), resources, state)
            finally:
                for _, task in window:
                    task.cancel()
        state.timing[phase.value] = time.monotonic() - start
        ok = sum(
            1
            for outcome in state.outcomes
            if outcome.phase == phase.value and outcome.status is OutcomeStatus.OK
        )
        logger.info(
            "Phase %s: %d rows from %d/%d targets",
            phase.value,
            resources.writer.rows_written(phase),
            ok,
            len(phase_targets),
        )

    @staticmethod
    async def _extract_one(
        extractor: ExtractorPort,
        target: ExtractionTarget,
        resources: _RunResources,
        *,
        network: bool,
    ) -> Sequence[ExtractedRow]:
        if network:
            network_extractor: NetworkExtractorPort = extractor  # type: ignore[assignment]
            async with resources.network_slots:
                return await network_extractor.extract(target)
        local_extractor: LocalExtractorPort = extractor  # type: ignore[assignment]
        async with resources.fs_slots:
            return await asyncio.to_thread(local_extractor.extract, target)

    @staticmethod
    async def _drain(
        phase: ExtractionPhase,
        target: ExtractionTarget,
        task: asyncio.Task[Sequence[ExtractedRow]],
        resources: _RunResources,
        state: _ExtractionRunState,
    ) -> None:
        try:
            rows = await task
        except Cargo2HfError as exc:
            if exc.fatal:
                raise
            _record_failure(phase, target, exc, state)
            return
        except _RECORDED_EXCEPTIONS as exc:
            _record_failure(phase, target, exc, state)
            return
        written = await asyncio.to_thread(resources.writer.write, phase, rows)
        state.outcomes.append(
            PhaseTargetOutcome(
                phase=phase.value,
                target=target.label,
                status=OutcomeStatus.OK,
                rows=written,
            )
        )
        logger.debug("%s: %d rows for %s", phase.value, written, target.label)

    @staticmethod
    def _build_report(
        request: ExtractionRequest,
        root: Project,
        targets: Sequence[ExtractionTarget],
        summaries: dict[ExtractionPhase, PhaseFileSummary],
        state: _ExtractionRunState,
    ) -> ExtractionReport:
        failures = tuple(
            ResolutionFailureRecord.from_error(error) for error in state.resolution.failures
        )
        has_failures = bool(failures) or any(
            outcome.status is OutcomeStatus.FAILED for outcome in state.outcomes
        )
        if not any(outcome.status is OutcomeStatus.OK for outcome in state.outcomes):
            state.status = RunStatus.FAILED
        elif has_failures:
            state.status = RunStatus.COMPLETED_WITH_FAILURES
        else:
            state.status = RunStatus.COMPLETED
        files = tuple(
            PhaseFileRecord(
                phase=phase.value,
                path=summary.path.as_posix(),
                rows=summary.rows,
                batches=summary.batches,
                sha256=file_sha256(summary.path),
            )
            for phase, summary in summaries.items()
        )
        return ExtractionReport(
            run_id=state.run_id,
            project=root.label,
            project_path=root.root.as_posix(),
            output_dir=Path(request.output_dir).as_posix(),
            phases=tuple(phase.value for phase in request.phases),
            include_deps=request.include_deps,
            status=state.status,
            targets=tuple(target.label for target in targets),
            resolution_failures=failures,
            outcomes=tuple(state.outcomes),
            files=files,
            timing=dict(state.timing),
        )


def _record_failure(
    phase: ExtractionPhase,
    target: ExtractionTarget,
    exc: BaseException,
    state: _ExtractionRunState,
) -> None:
    if isinstance(exc, ExtractionError):
        error = exc
    else:
        error = ExtractionError(phase, target.label, str(exc) or type(exc).__name__)
    state.outcomes.append(outcome_for_error(error, error_type=type(exc).__name__))
    record_error("extract", type(exc).__name__, attributes={"phase": phase.value})
    logger.warning("%s", error)


def run_extraction(
    request: ExtractionRequest,
    *,
    resolver: DependencyGraphResolver | None = None,
    client_factory: ClientFactory = default_client_factory,
) -> ExtractionReport:
    """Run an extraction synchronously.

    Returns
    -------
    ExtractionReport
        Report of the finished run.
    """
    orchestrator = ExtractionOrchestrator(resolver=resolver, client_factory=client_factory)
    return asyncio.run(orchestrator.run(request))


__all__ = [
    "ClientFactory",
    "ExtractionOrchestrator",
    "ResolutionError",
    "default_client_factory",
    "run_extraction",
]
