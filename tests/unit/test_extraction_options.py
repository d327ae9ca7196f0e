"""Tests for extraction option normalization."""

from __future__ import annotations

import pytest

from crates_registry.client import DEFAULT_REGISTRY_URL
from extraction.options import (
    DEFAULT_MAX_CONCURRENCY,
    ExtractionRunOptions,
    normalize_extraction_options,
)


def test_defaults() -> None:
    """Ensure missing options fall back to defaults."""
    options = normalize_extraction_options(None)
    assert options == ExtractionRunOptions()
    assert options.max_concurrency == DEFAULT_MAX_CONCURRENCY
    assert options.registry_url == DEFAULT_REGISTRY_URL
    assert options.max_depth is None


def test_mapping_values_are_coerced() -> None:
    """Ensure string-typed mapping values are coerced to option types."""
    options = normalize_extraction_options(
        {
            "max_depth": "2",
            "max_concurrency": "3",
            "batch_size": 10,
            "compression": "SNAPPY",
            "follow_symlinks": "true",
            "registry_url": "https://mirror.test/",
        }
    )
    assert options.max_depth == 2
    assert options.max_concurrency == 3
    assert options.batch_size == 10
    assert options.compression == "snappy"
    assert options.follow_symlinks is True
    assert options.registry_url == "https://mirror.test"


def test_non_positive_concurrency_uses_default() -> None:
    """Ensure zero or negative pool sizes fall back to defaults."""
    options = normalize_extraction_options({"max_concurrency": 0, "network_concurrency": -1})
    assert options.max_concurrency == DEFAULT_MAX_CONCURRENCY
    assert options.network_concurrency == ExtractionRunOptions().network_concurrency


def test_registry_url_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the registry URL can come from the environment."""
    monkeypatch.setenv("CARGO2HF_REGISTRY_URL", "https://env.test")
    assert normalize_extraction_options({}).registry_url == "https://env.test"
    explicit = normalize_extraction_options({"registry_url": "https://explicit.test"})
    assert explicit.registry_url == "https://explicit.test"


def test_invalid_options_rejected() -> None:
    """Ensure negative depth, unknown codecs and bad payload types are rejected."""
    with pytest.raises(ValueError, match="max_depth"):
        normalize_extraction_options({"max_depth": -1})
    with pytest.raises(ValueError, match="Unsupported Parquet compression"):
        normalize_extraction_options({"compression": "rar"})
    with pytest.raises(ValueError, match="batch_size"):
        normalize_extraction_options(ExtractionRunOptions(batch_size=0))
    with pytest.raises(TypeError, match="must be a mapping"):
        normalize_extraction_options(["max_depth"])  # type: ignore[arg-type]
