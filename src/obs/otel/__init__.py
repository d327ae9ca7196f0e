"""OpenTelemetry instrumentation for cargo2hf.

Only the API package is used: spans and instruments are no-ops until the
host process installs an SDK.
"""

from __future__ import annotations

from obs.otel.logging import TraceContextFilter, configure_logging
from obs.otel.metrics import record_error, record_http_request, record_rows_written
from obs.otel.scopes import (
    SCOPE_CLI,
    SCOPE_EXTRACT,
    SCOPE_REGISTRY,
    SCOPE_RESOLVE,
    SCOPE_STORAGE,
)
from obs.otel.tracing import get_tracer, stage_span

__all__ = [
    "SCOPE_CLI",
    "SCOPE_EXTRACT",
    "SCOPE_REGISTRY",
    "SCOPE_RESOLVE",
    "SCOPE_STORAGE",
    "TraceContextFilter",
    "configure_logging",
    "get_tracer",
    "record_error",
    "record_http_request",
    "record_rows_written",
    "stage_span",
]
