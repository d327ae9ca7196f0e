"""Structured command results."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from cli.exit_codes import ExitCode


@dataclass(frozen=True)
class CliResult:
    """What a command hands back to the launcher for rendering.

    Parameters
    ----------
    exit_code
        Process exit status.
    summary
        One-line outcome shown first.
    warnings
        Non-fatal problems, one per line.
    artifacts
        Files the command produced, by name.
    duration_ms
        Wall-clock time of the command, when measured.
    """

    exit_code: int
    summary: str | None = None
    warnings: tuple[str, ...] = ()
    artifacts: Mapping[str, Path] = field(default_factory=dict)
    duration_ms: float | None = None

    @property
    def ok(self) -> bool:
        """Return True when the exit status is success."""
        return self.exit_code == ExitCode.SUCCESS

    @classmethod
    def success(
        cls,
        summary: str,
        *,
        warnings: Sequence[str] = (),
        artifacts: Mapping[str, Path] | None = None,
        duration_ms: float | None = None,
    ) -> CliResult:
        """Return a result with exit status 0."""
        return cls(
            exit_code=ExitCode.SUCCESS,
            summary=summary,
            warnings=tuple(warnings),
            artifacts=dict(artifacts or {}),
            duration_ms=duration_ms,
        )

    @classmethod
    def failure(
        cls,
        summary: str | None = None,
        *,
        exit_code: ExitCode | int = ExitCode.GENERAL_ERROR,
    ) -> CliResult:
        """Return a failed result."""
        return cls(exit_code=int(exit_code), summary=summary)

    @classmethod
    def from_exception(cls, exc: BaseException, *, summary: str | None = None) -> CliResult:
        """Return the failed result for ``exc``, summarized by its message by default."""
        return cls.failure(summary or str(exc), exit_code=ExitCode.from_exception(exc))


__all__ = ["CliResult"]
