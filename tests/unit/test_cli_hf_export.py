"""Tests for the ``hf-export`` command and CLI result handling."""

from __future__ import annotations

import json
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from cli.commands.hf_export import (
    FINISHED,
    NO_VALID_PHASES,
    REPORT_FILE_NAME,
    HfExportOptions,
    build_request,
    hf_export_command,
)
from cli.commands.version import RUNTIME_DEPENDENCIES, version_command
from cli.config_loader import RunContext
from cli.config_models import ExtractionConfig, RegistryConfig, RootConfig
from cli.exit_codes import ExitCode
from cli.result import CliResult
from cli.result_action import cli_result_action
from extraction.contracts import DEFAULT_OUTPUT_DIR
from extraction.errors import ConfigurationError
from schema_spec.phases import ALL_PHASES, ExtractionPhase
from tests.test_helpers.crates import write_crate


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, force_terminal=False, color_system=None, width=400), buffer


def test_build_request_defaults() -> None:
    """Ensure an empty configuration yields the documented defaults."""
    request = build_request(Path("crate"), None, HfExportOptions(), config=RootConfig())
    assert request.project_path == "crate"
    assert request.output_dir == DEFAULT_OUTPUT_DIR
    assert request.phases == ALL_PHASES
    assert request.include_deps is False
    assert request.report_path is None
    assert request.run_id is None
    assert request.options == {}


def test_build_request_uses_config_values() -> None:
    """Ensure configuration fills every value the command line leaves unset."""
    config = RootConfig(
        output_dir="cfg-out",
        phases="build, metadata",
        include_deps=True,
        report=True,
        extraction=ExtractionConfig(max_depth=2, batch_size=64),
        registry=RegistryConfig(url="https://mirror.test"),
    )
    context = RunContext(run_id="run-1", log_level="INFO", config=config)
    request = build_request(
        Path("crate"), None, HfExportOptions(), config=config, run_context=context
    )
    assert request.output_dir == "cfg-out"
    assert request.phases == (ExtractionPhase.BUILD, ExtractionPhase.METADATA)
    assert request.include_deps is True
    assert request.report_path == str(Path("cfg-out") / REPORT_FILE_NAME)
    assert request.run_id == "run-1"
    assert request.options == {
        "max_depth": 2,
        "batch_size": 64,
        "registry_url": "https://mirror.test",
    }


def test_build_request_cli_overrides_config() -> None:
    """Ensure command-line values win over configuration."""
    config = RootConfig(
        output_dir="cfg-out",
        phases=("metadata", "build"),
        include_deps=True,
        report=True,
        extraction=ExtractionConfig(max_depth=2, max_concurrency=8),
    )
    options = HfExportOptions(
        include_deps=False,
        phases="source_code",
        max_depth=0,
        max_concurrency=3,
        report=False,
    )
    request = build_request(Path("crate"), Path("cli-out"), options, config=config)
    assert request.output_dir == "cli-out"
    assert request.phases == (ExtractionPhase.SOURCE_CODE,)
    assert request.include_deps is False
    assert request.report_path is None
    assert request.options == {"max_depth": 0, "max_concurrency": 3}


def test_build_request_drops_unknown_phases(caplog: pytest.LogCaptureFixture) -> None:
    """Ensure unknown phase tokens are dropped with a warning."""
    options = HfExportOptions(phases="metadata,bogus,,metadata")
    with caplog.at_level("WARNING"):
        request = build_request(Path("crate"), None, options, config=RootConfig())
    assert request.phases == (ExtractionPhase.METADATA,)
    assert "bogus" in caplog.text


def test_hf_export_rejects_empty_phase_list(demo_crate: Path, tmp_path: Path) -> None:
    """Ensure an all-invalid phase list exits 1 without touching the output."""
    output = tmp_path / "out"
    result = hf_export_command(demo_crate, output, HfExportOptions(phases="bogus, nope"))
    assert result.exit_code == ExitCode.GENERAL_ERROR
    assert result.summary == NO_VALID_PHASES
    assert not output.exists()


def test_hf_export_success(demo_crate: Path, tmp_path: Path) -> None:
    """Ensure a successful export reports its files and exits 0."""
    output = tmp_path / "out"
    result = hf_export_command(
        demo_crate, output, HfExportOptions(phases="metadata,build", report=True)
    )
    assert result.ok
    assert result.summary is not None
    assert result.summary.startswith(f"{FINISHED} (completed)")
    assert result.warnings == ()
    assert set(result.artifacts) == {"metadata", "build", "report"}
    assert result.artifacts["report"] == output / REPORT_FILE_NAME
    assert (output / "metadata.parquet").is_file()
    assert result.duration_ms is not None


def test_hf_export_partial_failures_still_succeed(tmp_path: Path) -> None:
    """Ensure unresolved dependencies surface as warnings with exit code 0."""
    root = write_crate(tmp_path / "app", "app", manifest='[dependencies]\nfoo = "1.0"')
    result = hf_export_command(
        root,
        tmp_path / "out",
        HfExportOptions(phases="dependencies", include_deps=True),
    )
    assert result.exit_code == ExitCode.SUCCESS
    assert result.summary is not None
    assert "(completed_with_failures)" in result.summary
    assert len(result.warnings) == 1
    assert "'foo'" in result.warnings[0]


def test_hf_export_missing_project(tmp_path: Path) -> None:
    """Ensure a directory without a manifest is a fatal error."""
    result = hf_export_command(tmp_path / "missing", tmp_path / "out", HfExportOptions(phases="metadata"))
    assert result.exit_code == ExitCode.GENERAL_ERROR
    assert result.summary is not None
    assert "Cannot load Cargo project" in result.summary
    assert not (tmp_path / "out").exists()


def test_result_action_renders_success() -> None:
    """Ensure summaries, warnings, artifacts and timing are rendered."""
    console, buffer = _console()
    result = CliResult.success(
        "done",
        warnings=["phase x failed"],
        artifacts={"metadata": Path("out/metadata.parquet")},
        duration_ms=12.34,
    )
    assert cli_result_action(result, console=console) == 0
    lines = buffer.getvalue().splitlines()
    assert lines == [
        "done",
        "warning: phase x failed",
        "Artifacts:",
        "  metadata: out/metadata.parquet",
        "Duration: 12.3ms",
    ]


def test_result_action_passthrough_values() -> None:
    """Ensure ``None`` and integer returns map directly to exit codes."""
    console, buffer = _console()
    assert cli_result_action(None, console=console) == ExitCode.SUCCESS
    assert cli_result_action(2, console=console) == 2
    assert cli_result_action(CliResult.failure(), console=console) == 1
    assert buffer.getvalue() == ""


def test_result_action_unexpected_type() -> None:
    """Ensure unsupported return values are reported as errors."""
    console, buffer = _console()
    assert cli_result_action(["nope"], console=console) == ExitCode.GENERAL_ERROR
    assert "Unexpected command return type: list" in buffer.getvalue()


def test_exit_code_from_exception() -> None:
    """Ensure exceptions map onto the exit code taxonomy."""
    assert ExitCode.from_exception(ConfigurationError("bad")) == ExitCode.GENERAL_ERROR
    assert ExitCode.from_exception(ValueError("bad")) == ExitCode.GENERAL_ERROR
    result = CliResult.from_exception(FileNotFoundError("cargo2hf.toml"))
    assert result.exit_code == ExitCode.GENERAL_ERROR
    assert result.summary == "cargo2hf.toml"


def test_version_command(capsys: pytest.CaptureFixture[str]) -> None:
    """Ensure the version command prints a JSON payload."""
    assert version_command() == 0
    payload = json.loads(capsys.readouterr().out)
    assert "cargo2hf" in payload
    assert set(payload["dependencies"]) == set(RUNTIME_DEPENDENCIES)
