"""Span helpers for pipeline stages."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from obs.otel.attributes import normalize_attributes
from obs.otel.metrics import record_stage_duration

logger = logging.getLogger(__name__)

SLOW_STAGE_S = 5.0


def get_tracer(scope_name: str) -> trace.Tracer:
    """Return the tracer for an instrumentation scope."""
    return trace.get_tracer(scope_name)


def mark_span_failed(span: Span, exc: BaseException) -> None:
    """Attach ``exc`` to ``span`` and set its status to error."""
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"))


@contextmanager
def stage_span(
    name: str,
    *,
    stage: str,
    scope_name: str,
    attributes: Mapping[str, object] | None = None,
) -> Iterator[Span]:
    """Run a block inside a span and record its duration.

    The duration lands both on the span (``cargo2hf.duration_s``) and in the
    stage duration histogram, tagged ``ok`` or ``error``. Stages slower than
    :data:`SLOW_STAGE_S` are also logged.

    Parameters
    ----------
    name
        Span name, e.g. ``extraction.metadata``.
    stage
        Stage label used for the histogram.
    scope_name
        Instrumentation scope the tracer belongs to.
    attributes
        Extra span attributes.

    Yields
    ------
    Span
        The active span.
    """
    span_attributes = normalize_attributes({"cargo2hf.stage": stage, **(attributes or {})})
    tracer = get_tracer(scope_name)
    started = time.monotonic()
    outcome = "ok"
    with tracer.start_as_current_span(
        name,
        attributes=span_attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except BaseException as exc:
            outcome = "error"
            mark_span_failed(span, exc)
            raise
        finally:
            elapsed = time.monotonic() - started
            span.set_attribute("cargo2hf.duration_s", elapsed)
            record_stage_duration(stage, elapsed, status=outcome, attributes=attributes)
            if elapsed >= SLOW_STAGE_S:
                logger.info("%s took %.1fs (%s)", name, elapsed, outcome)


__all__ = ["SLOW_STAGE_S", "get_tracer", "mark_span_failed", "stage_span"]
