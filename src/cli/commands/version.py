"""``version`` command."""

from __future__ import annotations

import platform
import sys
from importlib.metadata import PackageNotFoundError, version

from serde_msgspec import encode_json

DISTRIBUTION_NAME = "cargo2hf"
RUNTIME_DEPENDENCIES = (
    "cyclopts",
    "httpx",
    "msgspec",
    "opentelemetry-api",
    "pathspec",
    "pyarrow",
    "rich",
    "uuid6",
)


def _installed(distribution: str) -> str | None:
    try:
        return version(distribution)
    except PackageNotFoundError:
        return None


def get_version() -> str:
    """Return the installed cargo2hf version, ``0.0.0-dev`` from a source tree."""
    return _installed(DISTRIBUTION_NAME) or "0.0.0-dev"


def version_info() -> dict[str, object]:
    """Return cargo2hf, interpreter and dependency versions.

    Returns
    -------
    dict[str, object]
        Dependencies that are not installed map to ``None``.
    """
    return {
        DISTRIBUTION_NAME: get_version(),
        "python": platform.python_version(),
        "platform": platform.platform(),
        "dependencies": {name: _installed(name) for name in RUNTIME_DEPENDENCIES},
    }


def version_command() -> int:
    """Print version information as JSON.

    Returns
    -------
    int
        Always 0.
    """
    sys.stdout.write(encode_json(version_info(), pretty=True, sort_keys=True).decode() + "\n")
    return 0


__all__ = ["RUNTIME_DEPENDENCIES", "get_version", "version_command", "version_info"]
