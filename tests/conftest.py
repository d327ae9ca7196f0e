"""Shared pytest fixtures and session diagnostics."""

from __future__ import annotations

import faulthandler
import sys
from pathlib import Path
from typing import Any

import pytest

from tests.test_helpers.crates import write_crate

_DIAG_DIR = Path("build/test-results")
_TRACE_PATH = _DIAG_DIR / "diagnostics_tracebacks.log"

_STATE: dict[str, Any] = {"faulthandler_file": None}


def pytest_sessionstart(session: object) -> None:
    """Enable faulthandler output for hard crashes during the session."""
    _ = session
    _DIAG_DIR.mkdir(parents=True, exist_ok=True)
    handle = _TRACE_PATH.open("w", encoding="utf-8")
    _STATE["faulthandler_file"] = handle
    faulthandler.enable(file=handle, all_threads=True)


def pytest_sessionfinish(session: object, exitstatus: int) -> None:
    """Disable faulthandler and close its log."""
    _ = (session, exitstatus)
    handle = _STATE.get("faulthandler_file")
    if handle is None:
        return
    faulthandler.enable(file=sys.stderr, all_threads=True)
    handle.close()
    _STATE["faulthandler_file"] = None


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``CARGO_HOME`` at an empty directory and clear cargo2hf env vars.

    Returns
    -------
    Path
        The isolated cargo home.
    """
    for name in ("CARGO2HF_LOG_LEVEL", "CARGO2HF_OUTPUT_DIR", "CARGO2HF_REGISTRY_URL"):
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "cargo-home"
    home.mkdir()
    monkeypatch.setenv("CARGO_HOME", str(home))
    return home


@pytest.fixture
def demo_crate(tmp_path: Path) -> Path:
    """Provide a small publishable crate named ``demo`` at version 0.1.0.

    Returns
    -------
    Path
        Crate root directory.
    """
    return write_crate(
        tmp_path / "demo",
        "demo",
        "0.1.0",
        package_extra="""
        authors = ["Ada <ada@example.com>"]
        license = "MIT"
        description = "A demo crate."
        keywords = ["demo"]
        """,
        manifest="""
        [dependencies]
        serde = "1.0"
        """,
        files={
            "src/main.rs": "// entry point\nfn main() {\n\n    demo::answer();\n}\n",
            "README.md": "# demo\n",
        },
    )
