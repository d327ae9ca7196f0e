"""Metrics catalog and helpers for cargo2hf telemetry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from opentelemetry import metrics

from obs.otel.attributes import normalize_attributes
from obs.otel.scopes import SCOPE_METRICS


class MetricName(StrEnum):
    """Canonical metric names."""

    STAGE_DURATION = "cargo2hf.stage.duration"
    ERROR_COUNT = "cargo2hf.error.count"
    ROWS_WRITTEN = "cargo2hf.rows.written"
    HTTP_REQUESTS = "cargo2hf.registry.requests"


@dataclass(frozen=True)
class MetricsRegistry:
    """Registry for cargo2hf metric instruments."""

    stage_duration: metrics.Histogram
    error_count: metrics.Counter
    rows_written: metrics.Counter
    http_requests: metrics.Counter


_REGISTRY_CACHE: dict[str, MetricsRegistry | None] = {"value": None}


def _registry() -> MetricsRegistry:
    cached = _REGISTRY_CACHE["value"]
    if cached is not None:
        return cached
    meter = metrics.get_meter(SCOPE_METRICS)
    registry = MetricsRegistry(
        stage_duration=meter.create_histogram(
            MetricName.STAGE_DURATION,
            unit="s",
            description="Duration of pipeline stages.",
        ),
        error_count=meter.create_counter(
            MetricName.ERROR_COUNT,
            description="Recorded resolution/extraction failures.",
        ),
        rows_written=meter.create_counter(
            MetricName.ROWS_WRITTEN,
            description="Rows written per phase file.",
        ),
        http_requests=meter.create_counter(
            MetricName.HTTP_REQUESTS,
            description="Requests issued to the crate registry API.",
        ),
    )
    _REGISTRY_CACHE["value"] = registry
    return registry


def record_stage_duration(
    stage: str,
    duration_s: float,
    *,
    status: str,
    attributes: Mapping[str, object] | None = None,
) -> None:
    """Record a stage duration histogram value."""
    payload: dict[str, object] = {"stage": stage, "status": status}
    if attributes:
        payload.update(attributes)
    _registry().stage_duration.record(duration_s, normalize_attributes(payload))


def record_error(
    stage: str,
    error_type: str,
    *,
    attributes: Mapping[str, object] | None = None,
) -> None:
    """Increment the error count metric."""
    payload: dict[str, object] = {"stage": stage, "error_type": error_type}
    if attributes:
        payload.update(attributes)
    _registry().error_count.add(1, normalize_attributes(payload))


def record_rows_written(phase: str, rows: int) -> None:
    """Add flushed rows to the per-phase counter."""
    if rows <= 0:
        return
    _registry().rows_written.add(rows, normalize_attributes({"phase": phase}))


def record_http_request(endpoint: str, *, status_code: int | None) -> None:
    """Count a registry API request by endpoint and status."""
    _registry().http_requests.add(
        1,
        normalize_attributes({"endpoint": endpoint, "status_code": status_code}),
    )


__all__ = [
    "MetricName",
    "MetricsRegistry",
    "record_error",
    "record_http_request",
    "record_rows_written",
    "record_stage_duration",
]
