"""Filesystem helpers shared by the manifest reader, writer and report."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from pathlib import Path

import msgspec

type PathLike = str | Path

_HASH_CHUNK = 1 << 16


def ensure_path(value: PathLike) -> Path:
    """Return ``value`` as a :class:`~pathlib.Path`."""
    return value if isinstance(value, Path) else Path(value)


def read_toml(path: Path) -> Mapping[str, object]:
    """Decode a UTF-8 TOML document whose top level is a table.

    Raises
    ------
    TypeError
        Raised when the document does not decode to a table.
    """
    payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    if isinstance(payload, dict):
        return payload
    msg = f"{path} does not hold a TOML table (got {type(payload).__name__})."
    raise TypeError(msg)


def write_bytes_atomic(path: Path, payload: bytes) -> Path:
    """Write ``payload`` to a hidden sibling and move it over ``path``.

    Returns
    -------
    Path
        ``path``, now holding exactly ``payload``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    staged = path.with_name(f".{path.name}.tmp")
    staged.write_bytes(payload)
    staged.replace(path)
    return path


def file_sha256(path: Path) -> str:
    """Return the hex SHA-256 of a file's contents."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        while chunk := handle.read(_HASH_CHUNK):
            digest.update(chunk)
    return digest.hexdigest()


__all__ = ["PathLike", "ensure_path", "file_sha256", "read_toml", "write_bytes_atomic"]
