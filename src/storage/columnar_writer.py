"""Per-phase Parquet sinks with bounded row buffers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

import pyarrow as pa
import pyarrow.parquet as pq

from extraction.errors import SchemaViolationError, WriteError
from obs.otel.metrics import record_rows_written
from schema_spec.phases import ExtractionPhase
from schema_spec.registry import phase_schema, row_violations, rows_from_table, rows_to_batch
from schema_spec.rows import ExtractedRow
from storage.parquet import (
    ParquetWriteOptions,
    open_parquet_writer,
    partial_path,
    read_table_parquet,
)
from utils.file_io import PathLike, ensure_path

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1024


@dataclass(frozen=True)
class PhaseFileSummary:
    """What was written to one phase file."""

    phase: ExtractionPhase
    path: Path
    rows: int
    batches: int


@dataclass
class _PhaseSink:
    phase: ExtractionPhase
    path: Path
    writer: pq.ParquetWriter
    buffer: list[ExtractedRow] = field(default_factory=list)
    rows: int = 0
    batches: int = 0
    closed: bool = False


class ColumnarWriter:
    """Accumulate phase rows and flush them into ``<output>/<phase>.parquet``.

    Each phase has exactly one sink. Rows are validated against the phase
    schema on the way in and buffered up to ``batch_size`` before a record
    batch is written. Files are staged under a hidden sibling name and moved
    into place by :meth:`close`, which replaces any previous file of the same
    name and leaves unrelated files in the directory alone.
    Calls may come from worker threads; sink access is serialized.
    """

    def __init__(
        self,
        output_dir: PathLike,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        write_options: ParquetWriteOptions | None = None,
    ) -> None:
        if batch_size <= 0:
            msg = f"batch_size must be positive, got {batch_size}."
            raise ValueError(msg)
        self.output_dir = ensure_path(output_dir)
        self.batch_size = batch_size
        self.write_options = write_options or ParquetWriteOptions()
        self._sinks: dict[ExtractionPhase, _PhaseSink] = {}
        self._summaries: dict[ExtractionPhase, PhaseFileSummary] = {}
        self._lock = threading.RLock()

    def __enter__(self) -> ColumnarWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def path_for(self, phase: ExtractionPhase) -> Path:
        """Return the final file path for a phase."""
        return self.output_dir / phase.file_name

    def open(self, phase: ExtractionPhase) -> Path:
        """Create the sink for ``phase`` if it does not exist yet.

        Returns
        -------
        Path
            Final path the phase file will have once closed.

        Raises
        ------
        WriteError
            Raised when the output directory or file cannot be created.
        """
        sink = self._sinks.get(phase)
        if sink is not None:
            return sink.path
        final = self.path_for(phase)
        try:
            writer = open_parquet_writer(
                partial_path(final),
                phase_schema(phase),
                opts=self.write_options,
            )
        except (OSError, pa.ArrowException) as exc:
            raise WriteError(final, str(exc)) from exc
        self._sinks[phase] = _PhaseSink(phase=phase, path=final, writer=writer)
        logger.debug("Opened %s sink at %s", phase.value, final)
        return final

    def write(self, phase: ExtractionPhase, rows: Iterable[ExtractedRow]) -> int:
        """Validate and buffer rows, flushing every ``batch_size`` rows.

        Returns
        -------
        int
            Number of rows accepted.

        Raises
        ------
        SchemaViolationError
            Raised when a row does not conform to the phase schema.
        WriteError
            Raised when the sink is closed or a flush fails.
        """
        with self._lock:
            self.open(phase)
            sink = self._sinks[phase]
            if sink.closed:
                raise WriteError(sink.path, "sink already closed")
            accepted = 0
            for row in rows:
                issues = row_violations(phase, row)
                if issues:
                    raise SchemaViolationError(phase, issues)
                sink.buffer.append(row)
                accepted += 1
                if len(sink.buffer) >= self.batch_size:
                    self._flush_sink(sink)
            return accepted

    def close(self) -> Mapping[ExtractionPhase, PhaseFileSummary]:
        """Flush remaining rows and finalize every opened phase file.

        Every sink is closed even when an earlier one fails; the first failure
        is raised afterwards.

        Returns
        -------
        Mapping[ExtractionPhase, PhaseFileSummary]
            Summary per finalized phase file.

        Raises
        ------
        WriteError
            Raised when any sink fails to flush or finalize.
        """
        first_error: WriteError | None = None
        with self._lock:
            for sink in self._sinks.values():
                if sink.closed:
                    continue
                try:
                    self._finalize_sink(sink)
                except WriteError as exc:
                    logger.warning("Could not finalize %s: %s", sink.path, exc.reason)
                    first_error = first_error or exc
        if first_error is not None:
            raise first_error
        return dict(self._summaries)

    def rows_written(self, phase: ExtractionPhase) -> int:
        """Return rows flushed so far for ``phase``."""
        sink = self._sinks.get(phase)
        return sink.rows if sink is not None else 0

    def _flush_sink(self, sink: _PhaseSink) -> None:
        if not sink.buffer:
            return
        batch = rows_to_batch(sink.phase, sink.buffer)
        try:
            sink.writer.write_batch(batch)
        except (OSError, pa.ArrowException) as exc:
            raise WriteError(sink.path, str(exc)) from exc
        sink.rows += batch.num_rows
        sink.batches += 1
        record_rows_written(sink.phase.value, batch.num_rows)
        sink.buffer.clear()

    def _finalize_sink(self, sink: _PhaseSink) -> None:
        sink.closed = True
        staged = partial_path(sink.path)
        try:
            self._flush_sink(sink)
        finally:
            try:
                sink.writer.close()
                staged.replace(sink.path)
            except (OSError, pa.ArrowException) as exc:
                raise WriteError(sink.path, str(exc)) from exc
        self._summaries[sink.phase] = PhaseFileSummary(
            phase=sink.phase,
            path=sink.path,
            rows=sink.rows,
            batches=sink.batches,
        )
        logger.debug("Finalized %s with %d rows", sink.path, sink.rows)


def read_phase_rows(path: PathLike, phase: ExtractionPhase) -> list[ExtractedRow]:
    """Read a phase file back into row structs.

    Returns
    -------
    list[ExtractedRow]
        Rows in file order.
    """
    return rows_from_table(phase, read_table_parquet(path))


__all__ = ["DEFAULT_BATCH_SIZE", "ColumnarWriter", "PhaseFileSummary", "read_phase_rows"]
