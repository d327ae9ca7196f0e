"""Manifest-level errors."""

from __future__ import annotations

from pathlib import Path


class ManifestError(ValueError):
    """A ``Cargo.toml`` or ``Cargo.lock`` could not be read or interpreted."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class DependencyNotFoundError(LookupError):
    """A declared dependency has no on-disk location."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"{name}: {reason}")


__all__ = ["DependencyNotFoundError", "ManifestError"]
