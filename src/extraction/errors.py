"""Error taxonomy for extraction runs.

Fatal errors abort a run; recorded errors are absorbed into the
:class:`extraction.report.ExtractionReport` and never stop sibling work.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from schema_spec.phases import ExtractionPhase


class Cargo2HfError(RuntimeError):
    """Base class for extraction errors."""

    exit_code: int = 1
    fatal: bool = True


class ConfigurationError(Cargo2HfError):
    """The run cannot start: bad phases, missing manifest, bad options."""


class ResolutionError(Cargo2HfError):
    """A dependency could not be located or parsed."""

    fatal = False

    def __init__(
        self,
        dependency: str,
        reason: str,
        *,
        requirement: str | None = None,
        declared_by: str | None = None,
    ) -> None:
        self.dependency = dependency
        self.reason = reason
        self.requirement = requirement
        self.declared_by = declared_by
        where = f" (required by {declared_by})" if declared_by else ""
        super().__init__(f"Could not resolve dependency {dependency!r}{where}: {reason}")


class ExtractionError(Cargo2HfError):
    """One phase failed for one target."""

    fatal = False

    def __init__(self, phase: ExtractionPhase, target: str, reason: str) -> None:
        self.phase = phase
        self.target = target
        self.reason = reason
        super().__init__(f"{phase.value} extraction failed for {target}: {reason}")


class SchemaViolationError(Cargo2HfError):
    """A row did not conform to its phase schema."""

    def __init__(self, phase: ExtractionPhase, issues: Sequence[str]) -> None:
        self.phase = phase
        self.issues = tuple(issues)
        detail = "; ".join(self.issues)
        super().__init__(f"Row rejected by {phase.value} schema: {detail}")


class WriteError(Cargo2HfError):
    """The columnar sink could not be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class EmptyExtractionError(Cargo2HfError):
    """No phase produced a successful target."""


__all__ = [
    "Cargo2HfError",
    "ConfigurationError",
    "EmptyExtractionError",
    "ExtractionError",
    "ResolutionError",
    "SchemaViolationError",
    "WriteError",
]
