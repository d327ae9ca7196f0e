"""Normalize OpenTelemetry attributes for cargo2hf telemetry."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import cast

from opentelemetry.util.types import AttributeValue

from utils.env_utils import env_int

_MAX_ATTRIBUTE_LENGTH = env_int("OTEL_ATTRIBUTE_VALUE_LENGTH_LIMIT")


def _truncate_str(value: str) -> str:
    if _MAX_ATTRIBUTE_LENGTH is None:
        return value
    if _MAX_ATTRIBUTE_LENGTH <= 0:
        return ""
    return value[:_MAX_ATTRIBUTE_LENGTH]


def _normalize_sequence(values: Sequence[object]) -> AttributeValue:
    items = [item for item in values if item is not None]
    if not items:
        return []
    if all(isinstance(item, bool) for item in items):
        return [bool(item) for item in items]
    if all(isinstance(item, int) and not isinstance(item, bool) for item in items):
        return [cast("int", item) for item in items]
    if all(isinstance(item, (int, float)) and not isinstance(item, bool) for item in items):
        return [float(cast("int | float", item)) for item in items]
    return [_truncate_str(str(item)) for item in items]


def _normalize_value(value: object) -> AttributeValue:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return _truncate_str(value)
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, Path):
        return _truncate_str(value.as_posix())
    if isinstance(value, Mapping):
        return _truncate_str(json.dumps(value, sort_keys=True, default=str))
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return _normalize_sequence(list(value))
    return _truncate_str(str(value))


def normalize_attributes(attrs: Mapping[str, object] | None) -> dict[str, AttributeValue]:
    """Normalize attributes for spans/metrics.

    ``None`` values are dropped; enums, paths and mappings are rendered as strings.

    Returns:
    -------
    dict[str, AttributeValue]
        Normalized attribute mapping with OpenTelemetry-safe values.
    """
    if not attrs:
        return {}
    return {str(key): _normalize_value(value) for key, value in attrs.items() if value is not None}


__all__ = ["normalize_attributes"]
