"""Tests for CLI configuration discovery and decoding."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.config_loader import load_effective_config
from cli.config_models import RootConfig


def test_defaults_without_config(tmp_path: Path) -> None:
    """Ensure the default configuration applies when nothing is found."""
    resolution = load_effective_config(None, start=tmp_path)
    assert resolution.config == RootConfig()
    assert resolution.location is None


def test_cargo2hf_toml_found_upward(tmp_path: Path) -> None:
    """Ensure ``cargo2hf.toml`` is discovered from nested directories."""
    (tmp_path / "cargo2hf.toml").write_text(
        """
log_level = "DEBUG"
phases = ["metadata", "build"]
include_deps = true

[extraction]
max_depth = 2
compression = "snappy"

[registry]
url = "https://mirror.test"
min_request_interval_s = 0.0
""".lstrip(),
        encoding="utf-8",
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    resolution = load_effective_config(None, start=nested)
    config = resolution.config
    assert resolution.location == str(tmp_path / "cargo2hf.toml")
    assert config.log_level == "DEBUG"
    assert config.phases == ("metadata", "build")
    assert config.include_deps is True
    assert config.extraction_options() == {
        "max_depth": 2,
        "compression": "snappy",
        "registry_url": "https://mirror.test",
        "min_request_interval_s": 0.0,
    }


def test_pyproject_tool_section(tmp_path: Path) -> None:
    """Ensure ``[tool.cargo2hf]`` in ``pyproject.toml`` is used as a fallback."""
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "x"\n\n[tool.cargo2hf]\noutput_dir = "dataset"\n',
        encoding="utf-8",
    )
    resolution = load_effective_config(None, start=tmp_path)
    assert resolution.config.output_dir == "dataset"
    assert resolution.location == f"{tmp_path / 'pyproject.toml'}:tool.cargo2hf"


def test_pyproject_without_section_is_ignored(tmp_path: Path) -> None:
    """Ensure a ``pyproject.toml`` without the tool table does not count."""
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
    assert load_effective_config(None, start=tmp_path).config == RootConfig()


def test_explicit_config_file(tmp_path: Path) -> None:
    """Ensure an explicit file wins and must exist."""
    path = tmp_path / "custom.toml"
    path.write_text('output_dir = "elsewhere"\n', encoding="utf-8")
    assert load_effective_config(str(path)).config.output_dir == "elsewhere"
    with pytest.raises(FileNotFoundError):
        load_effective_config(str(tmp_path / "missing.toml"))


def test_explicit_pyproject_requires_section(tmp_path: Path) -> None:
    """Ensure an explicit ``pyproject.toml`` must carry the tool table."""
    path = tmp_path / "pyproject.toml"
    path.write_text('[project]\nname = "x"\n', encoding="utf-8")
    with pytest.raises(ValueError, match=r"missing \[tool.cargo2hf\]"):
        load_effective_config(str(path))


def test_unknown_keys_rejected(tmp_path: Path) -> None:
    """Ensure typos in config files are reported instead of ignored."""
    path = tmp_path / "cargo2hf.toml"
    path.write_text("[extraction]\nmax_dpeth = 3\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Config validation failed"):
        load_effective_config(str(path))


def test_invalid_toml(tmp_path: Path) -> None:
    """Ensure TOML syntax errors are reported with the file path."""
    path = tmp_path / "cargo2hf.toml"
    path.write_text("log_level = \n", encoding="utf-8")
    with pytest.raises(ValueError, match="is not valid TOML"):
        load_effective_config(str(path))
