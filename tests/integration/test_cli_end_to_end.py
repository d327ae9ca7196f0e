"""End-to-end tests for ``cargo2hf hf-export``."""

from __future__ import annotations

from contextlib import suppress
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING

from cyclopts.exceptions import CycloptsError
from rich.console import Console

from cli.app import SessionOptions, app, meta_launcher
from extraction.report import RunStatus, load_report
from schema_spec.phases import ExtractionPhase
from storage.columnar_writer import read_phase_rows
from tests.test_helpers.crates import write_crate

if TYPE_CHECKING:
    import pytest


def _workspace(tmp_path: Path) -> Path:
    write_crate(tmp_path / "helper", "helper", "0.2.0")
    return write_crate(
        tmp_path / "app",
        "app",
        "1.0.0",
        manifest="""
        [dependencies]
        helper = { path = "../helper" }
        """,
    )


def test_hf_export_writes_requested_phases(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Ensure the command writes one file per requested phase and exits 0."""
    root = _workspace(tmp_path)
    output = tmp_path / "dataset"
    monkeypatch.chdir(tmp_path)

    exit_code = meta_launcher(
        "hf-export", str(root), str(output), "--phases", "metadata,dependencies", "--include-deps"
    )

    assert exit_code == 0
    assert "Finished Hugging Face dataset extraction" in capsys.readouterr().out
    assert sorted(path.name for path in output.iterdir()) == [
        "dependencies.parquet",
        "metadata.parquet",
    ]
    metadata = read_phase_rows(output / "metadata.parquet", ExtractionPhase.METADATA)
    assert [row.name for row in metadata] == ["app", "helper"]


def test_hf_export_invalid_phases_exit_1(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Ensure an all-invalid ``--phases`` value fails without creating output."""
    root = _workspace(tmp_path)
    output = tmp_path / "dataset"
    monkeypatch.chdir(tmp_path)

    exit_code = meta_launcher("hf-export", str(root), str(output), "--phases", "bogus")

    assert exit_code == 1
    assert "No valid phases specified." in capsys.readouterr().out
    assert not output.exists()


def test_hf_export_writes_report(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure ``--report`` writes the run report next to the phase files."""
    root = _workspace(tmp_path)
    output = tmp_path / "dataset"
    monkeypatch.chdir(tmp_path)

    exit_code = meta_launcher(
        "hf-export",
        str(root),
        str(output),
        "--phases",
        "build",
        "--report",
        session=SessionOptions(run_id="fixed-run-id"),
    )

    assert exit_code == 0
    report = load_report(output / "extraction_report.json")
    assert report.run_id == "fixed-run-id"
    assert report.status is RunStatus.COMPLETED
    assert report.targets == ("app@1.0.0",)


def test_hf_export_applies_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure ``cargo2hf.toml`` in the working directory supplies defaults."""
    root = _workspace(tmp_path)
    (tmp_path / "cargo2hf.toml").write_text(
        """
output_dir = "from-config"
phases = "metadata"
include_deps = true

[extraction]
batch_size = 1
""".lstrip(),
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    exit_code = meta_launcher("hf-export", str(root))

    output = tmp_path / "from-config"
    assert exit_code == 0
    assert sorted(path.name for path in output.iterdir()) == ["metadata.parquet"]
    rows = read_phase_rows(output / "metadata.parquet", ExtractionPhase.METADATA)
    assert [row.name for row in rows] == ["app", "helper"]


def test_invalid_config_file_exit_1(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Ensure an unknown configuration key is reported instead of ignored."""
    root = _workspace(tmp_path)
    (tmp_path / "cargo2hf.toml").write_text('unknown_key = "x"\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    exit_code = meta_launcher("hf-export", str(root))

    assert exit_code == 1
    assert "Config validation failed" in capsys.readouterr().out


def test_unknown_command_is_a_parse_error() -> None:
    """Ensure unknown commands are rejected by the parser."""
    buffer = StringIO()
    error_console = Console(file=buffer, force_terminal=False, color_system=None, width=120)
    with suppress(CycloptsError):
        app.parse_args(["export"], exit_on_error=False, print_error=True, error_console=error_console)
    assert "export" in buffer.getvalue()
