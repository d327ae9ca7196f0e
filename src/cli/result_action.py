"""Render command results and turn them into exit statuses."""

from __future__ import annotations

from rich.console import Console

from cli.exit_codes import ExitCode
from cli.result import CliResult


def cli_result_action(result: object, *, console: Console | None = None) -> int:
    """Render a command's return value and return the process exit status.

    ``None`` and plain integers pass through silently. A :class:`CliResult`
    prints its summary, warnings, artifacts and duration.

    Returns
    -------
    int
        Exit status for the process.
    """
    if result is None:
        return ExitCode.SUCCESS
    if isinstance(result, int):
        return result
    console = console or Console()
    if not isinstance(result, CliResult):
        console.print(
            f"Unexpected command return type: {type(result).__name__} (value: {result!r})",
            markup=False,
            highlight=False,
        )
        return ExitCode.GENERAL_ERROR
    _render(console, result)
    return int(result.exit_code)


def _summary_style(result: CliResult) -> str:
    if not result.ok:
        return "bold red"
    return "yellow" if result.warnings else "green"


def _render(console: Console, result: CliResult) -> None:
    def emit(text: str, style: str | None = None) -> None:
        console.print(text, style=style, markup=False, highlight=False)

    if result.summary:
        emit(result.summary, _summary_style(result))
    for line in result.warnings:
        emit(f"warning: {line}", "yellow")
    if result.artifacts:
        emit("Artifacts:")
        for name, path in sorted(result.artifacts.items()):
            emit(f"  {name}: {path}")
    if result.duration_ms is not None:
        emit(f"Duration: {result.duration_ms:.1f}ms")


__all__ = ["cli_result_action"]
