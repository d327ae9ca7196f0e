"""Main application setup for the cargo2hf CLI."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Annotated, Literal

from cyclopts import App, Group, Parameter

from cli.commands.hf_export import hf_export_command
from cli.commands.version import get_version, version_command
from cli.config_loader import RunContext, load_effective_config
from cli.result import CliResult
from cli.result_action import cli_result_action
from extraction.report import new_run_id
from obs.otel import configure_logging

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

session_group = Group("Session", help="Session and run context options.", sort_key=0)

_HELP_EPILOGUE = """
Examples:
  cargo2hf hf-export .                         Extract every phase of the crate in cwd
  cargo2hf hf-export ./crate ./out --include-deps
                                               Extract the crate and its dependencies
  cargo2hf hf-export . --phases metadata,build Extract selected phases only

Environment Variables:
  CARGO2HF_LOG_LEVEL      Default log level (DEBUG, INFO, WARNING, ERROR)
  CARGO2HF_OUTPUT_DIR     Default output directory
  CARGO2HF_REGISTRY_URL   crates.io API base URL
  CARGO_HOME              Cargo home holding the unpacked registry sources
"""

app = App(
    name="cargo2hf",
    help="Export Cargo projects as Hugging Face style Parquet datasets.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version(),
    version_flags=["--version", "-V"],
    default_parameter=Parameter(
        show_default=True,
        show_env_var=True,
    ),
)

app.meta.group_parameters = session_group


@dataclass(frozen=True)
class SessionOptions:
    """Session-level configuration parameters."""

    config_file: Annotated[
        str | None,
        Parameter(
            name="--config",
            help="Path to configuration file (overrides default search).",
            group=session_group,
        ),
    ] = None
    run_id: Annotated[
        str | None,
        Parameter(
            name="--run-id",
            help="Explicit run identifier (UUID7 generated if not provided).",
            group=session_group,
        ),
    ] = None
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None,
        Parameter(
            name="--log-level",
            help="Logging verbosity level.",
            env_var="CARGO2HF_LOG_LEVEL",
            group=session_group,
        ),
    ] = None


_DEFAULT_SESSION_OPTIONS = SessionOptions()


@app.meta.default
def meta_launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    session: Annotated[SessionOptions, Parameter(name="*")] = _DEFAULT_SESSION_OPTIONS,
) -> int:
    """Meta launcher for config selection and context injection.

    Returns
    -------
    int
        Exit status code from command execution.
    """
    try:
        resolution = load_effective_config(session.config_file)
    except (OSError, TypeError, ValueError) as exc:
        configure_logging(session.log_level or "INFO")
        return cli_result_action(CliResult.from_exception(exc))

    log_level = (session.log_level or resolution.config.log_level or "INFO").upper()
    if log_level not in LOG_LEVELS:
        configure_logging("INFO")
        return cli_result_action(
            CliResult.failure(f"Unsupported log level {log_level!r}.")
        )
    configure_logging(log_level)

    run_context = RunContext.from_resolution(
        resolution, run_id=session.run_id or new_run_id(), log_level=log_level
    )

    command, bound, ignored = app.parse_args(list(tokens))
    for name, hint in ignored.items():
        if hint is RunContext or name == "run_context":
            bound.arguments[name] = run_context
    return cli_result_action(command(*bound.args, **bound.kwargs))


app.command(hf_export_command, name="hf-export")
app.command(version_command, name="version")


def run(tokens: Sequence[str] | None = None) -> int:
    """Run the CLI on ``tokens`` (default: ``sys.argv[1:]``) and return the exit status.

    Returns
    -------
    int
        Process exit status.
    """
    argv = list(sys.argv[1:] if tokens is None else tokens)
    command, bound, _ignored = app.meta.parse_args(argv)
    return cli_result_action(command(*bound.args, **bound.kwargs))


def main() -> None:
    """Run the cargo2hf CLI."""
    raise SystemExit(run())


__all__ = ["app", "main", "run"]
