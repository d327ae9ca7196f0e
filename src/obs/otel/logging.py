"""Console logging with trace correlation."""

from __future__ import annotations

import logging

from opentelemetry import trace
from rich.console import Console
from rich.logging import RichHandler

CONSOLE_HANDLER_NAME = "cargo2hf-console"
LOG_FORMAT = "%(name)s: %(message)s%(trace_suffix)s"


class TraceContextFilter(logging.Filter):
    """Set ``record.trace_suffix`` to `` [trace=<id>]`` inside a recording span.

    Outside a span the suffix is empty, so the format string never renders
    placeholder ids.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = trace.get_current_span().get_span_context()
        suffix = f" [trace={context.trace_id:032x}]" if context.is_valid else ""
        record.trace_suffix = suffix  # type: ignore[attr-defined]
        return True


def configure_logging(level: str) -> logging.Handler:
    """Route log records to stderr through rich and set the root level.

    The console handler is installed once per process; later calls only
    change the level.

    Returns
    -------
    logging.Handler
        The cargo2hf console handler.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in root.handlers:
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            return handler
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(TraceContextFilter())
    root.addHandler(handler)
    return handler


__all__ = ["CONSOLE_HANDLER_NAME", "LOG_FORMAT", "TraceContextFilter", "configure_logging"]
