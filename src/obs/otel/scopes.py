"""Instrumentation scope names, one per subsystem."""

from __future__ import annotations

from enum import StrEnum


class ScopeName(StrEnum):
    """OpenTelemetry instrumentation scopes used by cargo2hf."""

    CLI = "cargo2hf.cli"
    RESOLVE = "cargo2hf.resolve"
    EXTRACT = "cargo2hf.extract"
    REGISTRY = "cargo2hf.registry"
    STORAGE = "cargo2hf.storage"
    METRICS = "cargo2hf.metrics"


SCOPE_CLI = ScopeName.CLI
SCOPE_RESOLVE = ScopeName.RESOLVE
SCOPE_EXTRACT = ScopeName.EXTRACT
SCOPE_REGISTRY = ScopeName.REGISTRY
SCOPE_STORAGE = ScopeName.STORAGE
SCOPE_METRICS = ScopeName.METRICS

__all__ = [
    "SCOPE_CLI",
    "SCOPE_EXTRACT",
    "SCOPE_METRICS",
    "SCOPE_REGISTRY",
    "SCOPE_RESOLVE",
    "SCOPE_STORAGE",
    "ScopeName",
]
