"""Observability helpers (tracing, metrics, log correlation)."""
