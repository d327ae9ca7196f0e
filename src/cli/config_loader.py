"""Config loading for the CLI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

import msgspec

from cli.config_models import RootConfig
from serde_msgspec import describe_validation_error

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "cargo2hf.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"
TOOL_SECTION = "cargo2hf"


@dataclass(frozen=True)
class ConfigResolution:
    """Resolved configuration plus where it came from."""

    config: RootConfig
    location: str | None = None


@dataclass(frozen=True)
class RunContext:
    """Per-invocation values the launcher injects into commands."""

    run_id: str
    log_level: str
    config: RootConfig = field(default_factory=RootConfig)
    config_location: str | None = None

    @classmethod
    def from_resolution(
        cls, resolution: ConfigResolution, *, run_id: str, log_level: str
    ) -> RunContext:
        """Bind a config resolution to one invocation."""
        return cls(
            run_id=run_id,
            log_level=log_level,
            config=resolution.config,
            config_location=resolution.location,
        )


def load_effective_config(config_file: str | None, *, start: Path | None = None) -> ConfigResolution:
    """Load config from an explicit file, ``cargo2hf.toml``, or ``pyproject.toml``.

    Without ``config_file`` the first ``cargo2hf.toml`` found from ``start``
    (default: cwd) upward wins; otherwise the nearest ``pyproject.toml`` with a
    ``[tool.cargo2hf]`` table is used.

    Parameters
    ----------
    config_file
        Optional explicit config file path.
    start
        Directory the upward search begins in.

    Returns
    -------
    ConfigResolution
        Decoded configuration; defaults when nothing was found.

    Raises
    ------
    FileNotFoundError
        Raised when ``config_file`` does not exist.
    """
    if config_file:
        path = Path(config_file)
        if not path.is_file():
            msg = f"Config file not found: {config_file!r}."
            raise FileNotFoundError(msg)
        raw, location = _resolve_explicit_payload(path)
        return ConfigResolution(_decode_root_config(raw, location=location), location)

    base = start or Path.cwd()
    config_path = _find_in_parents(CONFIG_FILE_NAME, base)
    if config_path is not None:
        raw = _read_toml(config_path)
        return ConfigResolution(
            _decode_root_config(raw, location=str(config_path)), str(config_path)
        )

    pyproject_path = _find_in_parents(PYPROJECT_FILE_NAME, base)
    if pyproject_path is not None:
        nested = _extract_tool_config(_read_toml(pyproject_path))
        if nested is not None:
            location = f"{pyproject_path}:tool.{TOOL_SECTION}"
            return ConfigResolution(_decode_root_config(nested, location=location), location)
    return ConfigResolution(RootConfig())


def _find_in_parents(filename: str, start: Path) -> Path | None:
    path = start.resolve()
    while True:
        candidate = path / filename
        if candidate.is_file():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


def _read_toml(path: Path) -> dict[str, object]:
    try:
        payload = msgspec.toml.decode(path.read_bytes(), type=object)
    except msgspec.DecodeError as exc:
        msg = f"Config file {path} is not valid TOML: {exc}"
        raise ValueError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise TypeError(msg)
    return cast("dict[str, object]", payload)


def _decode_root_config(raw: Mapping[str, object], *, location: str) -> RootConfig:
    try:
        config = msgspec.convert(dict(raw), type=RootConfig, strict=True)
    except msgspec.ValidationError as exc:
        msg = f"Config validation failed for {location}: {describe_validation_error(exc)}"
        raise ValueError(msg) from exc
    logger.debug("Loaded configuration from %s", location)
    return config


def _resolve_explicit_payload(path: Path) -> tuple[Mapping[str, object], str]:
    raw = _read_toml(path)
    if path.name == PYPROJECT_FILE_NAME:
        nested = _extract_tool_config(raw)
        if nested is None:
            msg = f"Config validation failed for {path}: missing [tool.{TOOL_SECTION}] section."
            raise ValueError(msg)
        return nested, f"{path}:tool.{TOOL_SECTION}"
    return raw, str(path)


def _extract_tool_config(raw: Mapping[str, object]) -> dict[str, object] | None:
    tool_section = raw.get("tool")
    if not isinstance(tool_section, dict):
        return None
    nested = tool_section.get(TOOL_SECTION)
    if not isinstance(nested, dict):
        return None
    return cast("dict[str, object]", nested)


__all__ = ["CONFIG_FILE_NAME", "ConfigResolution", "RunContext", "load_effective_config"]
