"""Process exit statuses."""

from __future__ import annotations

from enum import IntEnum

from cyclopts.exceptions import CycloptsError

from extraction.errors import Cargo2HfError


class ExitCode(IntEnum):
    """Exit statuses of ``cargo2hf``.

    A run that finished with recorded resolution or extraction failures still
    exits with ``SUCCESS``; the failures are printed as warnings.
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    PARSE_ERROR = 2

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExitCode:
        """Return the status a fatal ``exc`` ends the process with."""
        if isinstance(exc, CycloptsError):
            return cls.PARSE_ERROR
        if isinstance(exc, Cargo2HfError) and exc.exit_code in iter(cls):
            return cls(exc.exit_code)
        return cls.GENERAL_ERROR


__all__ = ["ExitCode"]
