"""Canonical extraction option contracts and normalization helpers."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import msgspec

from crates_registry.client import DEFAULT_REGISTRY_URL, DEFAULT_USER_AGENT
from utils.env_utils import env_value

DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_NETWORK_CONCURRENCY = 4
DEFAULT_BATCH_SIZE = 1024
DEFAULT_REQUEST_TIMEOUT_S = 30.0
DEFAULT_MIN_REQUEST_INTERVAL_S = 1.0
PARQUET_COMPRESSIONS = frozenset({"zstd", "snappy", "gzip", "brotli", "lz4", "none"})
_BOOL_WORDS = {
    **dict.fromkeys(("true", "yes", "on", "1"), True),
    **dict.fromkeys(("false", "no", "off", "0"), False),
}


class ExtractionRunOptions(msgspec.Struct, frozen=True):
    """Normalized runtime options consumed by the extraction orchestrator."""

    max_depth: int | None = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    network_concurrency: int = DEFAULT_NETWORK_CONCURRENCY
    batch_size: int = DEFAULT_BATCH_SIZE
    registry_url: str = DEFAULT_REGISTRY_URL
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    min_request_interval_s: float = DEFAULT_MIN_REQUEST_INTERVAL_S
    cargo_home: str | None = None
    follow_symlinks: bool = False
    compression: str = "zstd"


def normalize_extraction_options(
    options: ExtractionRunOptions | Mapping[str, object] | None,
) -> ExtractionRunOptions:
    """Normalize extraction options from typed or mapping payloads.

    Mapping values may be strings (config files, environment). Pool sizes and
    timings that are missing, unparsable or out of range fall back to their
    defaults. ``CARGO2HF_REGISTRY_URL`` supplies the registry URL when the
    payload does not name one.

    Returns:
        Normalized extraction options with canonical keys and defaults.

    Raises:
        TypeError: If ``options`` is not ``None``, ``ExtractionRunOptions``, or a mapping.
        ValueError: If a value is present but unusable (negative depth, unknown codec).
    """
    if isinstance(options, ExtractionRunOptions):
        _validate(options)
        return options
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        msg = "Extraction options must be a mapping, ExtractionRunOptions, or None."
        raise TypeError(msg)

    registry_url = (
        _as_str(options.get("registry_url"))
        or env_value("CARGO2HF_REGISTRY_URL")
        or DEFAULT_REGISTRY_URL
    )
    normalized = ExtractionRunOptions(
        max_depth=_as_int(options.get("max_depth")),
        max_concurrency=_positive(options.get("max_concurrency"), DEFAULT_MAX_CONCURRENCY),
        network_concurrency=_positive(
            options.get("network_concurrency"), DEFAULT_NETWORK_CONCURRENCY
        ),
        batch_size=_positive(options.get("batch_size"), DEFAULT_BATCH_SIZE),
        registry_url=registry_url.rstrip("/"),
        user_agent=_as_str(options.get("user_agent")) or DEFAULT_USER_AGENT,
        request_timeout_s=_non_negative(
            options.get("request_timeout_s"), DEFAULT_REQUEST_TIMEOUT_S
        ),
        min_request_interval_s=_non_negative(
            options.get("min_request_interval_s"), DEFAULT_MIN_REQUEST_INTERVAL_S
        ),
        cargo_home=_as_str(options.get("cargo_home")),
        follow_symlinks=_as_bool(options.get("follow_symlinks"), name="follow_symlinks"),
        compression=(_as_str(options.get("compression")) or "zstd").lower(),
    )
    _validate(normalized)
    return normalized


def _validate(options: ExtractionRunOptions) -> None:
    if options.max_depth is not None and options.max_depth < 0:
        msg = f"max_depth must be >= 0, got {options.max_depth}."
        raise ValueError(msg)
    for name in ("max_concurrency", "network_concurrency", "batch_size"):
        value = getattr(options, name)
        if value <= 0:
            msg = f"{name} must be positive, got {value}."
            raise ValueError(msg)
    if options.compression not in PARQUET_COMPRESSIONS:
        msg = (
            f"Unsupported Parquet compression {options.compression!r}; "
            f"expected one of {sorted(PARQUET_COMPRESSIONS)}."
        )
        raise ValueError(msg)


def _as_str(value: object) -> str | None:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


def _as_number[N: (int, float)](value: object, kind: type[N]) -> N | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return kind(value)
    text = _as_str(value)
    if text is None:
        return None
    try:
        return kind(text)
    except ValueError:
        return None


def _as_int(value: object) -> int | None:
    return _as_number(value, int)


def _positive(value: object, default: int) -> int:
    parsed = _as_number(value, int)
    return parsed if parsed is not None and parsed > 0 else default


def _non_negative(value: object, default: float) -> float:
    parsed = _as_number(value, float)
    return parsed if parsed is not None and parsed >= 0 else default


def _as_bool(value: object, *, name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, (bool, int)):
        return bool(value)
    flag = _BOOL_WORDS.get(str(value).strip().lower())
    if flag is None:
        msg = f"{name} must be a boolean, got {value!r}."
        raise ValueError(msg)
    return flag


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_NETWORK_CONCURRENCY",
    "ExtractionRunOptions",
    "normalize_extraction_options",
]
