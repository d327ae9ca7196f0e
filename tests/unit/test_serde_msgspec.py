"""Tests for shared msgspec helpers."""

from __future__ import annotations

import json
from pathlib import Path

import msgspec
import pytest

from cli.config_models import RootConfig
from serde_msgspec import describe_validation_error, encode_json


def test_encode_json_handles_paths_and_sets() -> None:
    """Ensure paths and sets encode deterministically."""
    payload = encode_json({"path": Path("a/b"), "tags": {"z", "a"}})
    assert json.loads(payload) == {"path": "a/b", "tags": ["a", "z"]}


def test_encode_json_sorted_and_pretty() -> None:
    """Ensure key sorting and indentation are opt-in."""
    assert encode_json({"b": 1, "a": 2}, sort_keys=True) == b'{"a":2,"b":1}'
    assert encode_json({"a": 1}, pretty=True) == b'{\n  "a": 1\n}'


def test_encode_json_rejects_unknown_types() -> None:
    """Ensure unsupported objects raise instead of being stringified."""
    with pytest.raises(TypeError):
        encode_json({"value": object()})


def test_describe_validation_error_leads_with_path() -> None:
    """Ensure the failing location is moved to the front of the message."""
    with pytest.raises(msgspec.ValidationError) as info:
        msgspec.convert({"extraction": {"max_depth": "x"}}, type=RootConfig, strict=True)
    message = describe_validation_error(info.value)
    assert message.startswith("$.extraction.max_depth: Expected `int | null`")
