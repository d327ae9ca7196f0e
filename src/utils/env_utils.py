"""Environment lookups."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def env_value(name: str) -> str | None:
    """Return the stripped value of ``name``; unset and blank both give ``None``."""
    value = os.environ.get(name, "").strip()
    return value or None


def env_int(name: str) -> int | None:
    """Return ``name`` parsed as an integer.

    Values that do not parse are logged and treated as unset.
    """
    value = env_value(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, value)
        return None


def cargo_home() -> Path:
    """Return the Cargo home directory.

    ``$CARGO_HOME`` when set, ``~/.cargo`` otherwise. The directory may not
    exist.
    """
    configured = env_value("CARGO_HOME")
    return Path(configured).expanduser() if configured else Path.home() / ".cargo"


__all__ = ["cargo_home", "env_int", "env_value"]
