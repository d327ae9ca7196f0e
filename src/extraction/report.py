"""Run report: per-(phase, target) outcomes, resolution failures, file summaries."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

import msgspec
import uuid6

from extraction.errors import ExtractionError, ResolutionError
from serde_msgspec import StructBaseStrict, encode_json
from utils.file_io import write_bytes_atomic


def new_run_id() -> str:
    """Return a fresh time-ordered (UUIDv7) run identifier."""
    return str(uuid6.uuid7())


class RunStatus(StrEnum):
    """Lifecycle states of an extraction run."""

    INITIALIZED = "initialized"
    RESOLVING = "resolving"
    EXTRACTING = "extracting"
    WRITING = "writing"
    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"
    FAILED = "failed"


class OutcomeStatus(StrEnum):
    """Result of one phase for one target."""

    OK = "ok"
    FAILED = "failed"


class ResolutionFailureRecord(StructBaseStrict, frozen=True):
    """A dependency that could not be resolved."""

    dependency: str
    reason: str
    requirement: str | None = None
    declared_by: str | None = None

    @classmethod
    def from_error(cls, error: ResolutionError) -> ResolutionFailureRecord:
        """Build the record for a resolution error."""
        return cls(
            dependency=error.dependency,
            reason=error.reason,
            requirement=error.requirement,
            declared_by=error.declared_by,
        )

    def to_error(self) -> ResolutionError:
        """Rebuild the error this record was made from."""
        return ResolutionError(
            self.dependency,
            self.reason,
            requirement=self.requirement,
            declared_by=self.declared_by,
        )


class PhaseTargetOutcome(StructBaseStrict, frozen=True):
    """What happened when one phase ran for one target."""

    phase: str
    target: str
    status: OutcomeStatus
    rows: int = 0
    error: str | None = None
    error_type: str | None = None


class PhaseFileRecord(StructBaseStrict, frozen=True):
    """One finalized phase file."""

    phase: str
    path: str
    rows: int
    batches: int
    sha256: str | None = None


class ExtractionReport(StructBaseStrict, frozen=True):
    """Final account of an extraction run."""

    run_id: str
    project: str
    project_path: str
    output_dir: str
    phases: tuple[str, ...]
    include_deps: bool
    status: RunStatus
    targets: tuple[str, ...] = ()
    resolution_failures: tuple[ResolutionFailureRecord, ...] = ()
    outcomes: tuple[PhaseTargetOutcome, ...] = ()
    files: tuple[PhaseFileRecord, ...] = ()
    timing: dict[str, float] = msgspec.field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        """Return True when any resolution or extraction failure was recorded."""
        return bool(self.resolution_failures) or any(
            outcome.status is OutcomeStatus.FAILED for outcome in self.outcomes
        )

    @property
    def failed_outcomes(self) -> tuple[PhaseTargetOutcome, ...]:
        """Return failed (phase, target) outcomes in recording order."""
        return tuple(o for o in self.outcomes if o.status is OutcomeStatus.FAILED)

    def resolution_errors(self) -> list[ResolutionError]:
        """Return recorded resolution failures as error objects."""
        return [record.to_error() for record in self.resolution_failures]

    def rows_written(self, phase: str) -> int:
        """Return rows finalized into the file for ``phase``."""
        for record in self.files:
            if record.phase == phase:
                return record.rows
        return 0

    def failure_summary(self) -> list[str]:
        """Return one human-readable line per recorded failure."""
        lines = [str(record.to_error()) for record in self.resolution_failures]
        lines.extend(
            f"{outcome.phase} failed for {outcome.target}: {outcome.error}"
            for outcome in self.failed_outcomes
        )
        return lines


def outcome_for_error(error: ExtractionError, *, error_type: str | None = None) -> PhaseTargetOutcome:
    """Return the failed outcome for an extraction error."""
    return PhaseTargetOutcome(
        phase=error.phase.value,
        target=error.target,
        status=OutcomeStatus.FAILED,
        error=error.reason,
        error_type=error_type or type(error).__name__,
    )


def write_report(report: ExtractionReport, path: Path) -> Path:
    """Write ``report`` as pretty-printed JSON.

    Returns
    -------
    Path
        The written path.
    """
    return write_bytes_atomic(path, encode_json(report, pretty=True))


def load_report(path: Path) -> ExtractionReport:
    """Read a report written by :func:`write_report`."""
    return msgspec.json.decode(path.read_bytes(), type=ExtractionReport)


__all__ = [
    "ExtractionReport",
    "OutcomeStatus",
    "PhaseFileRecord",
    "PhaseTargetOutcome",
    "ResolutionFailureRecord",
    "RunStatus",
    "load_report",
    "new_run_id",
    "outcome_for_error",
    "write_report",
]
