"""Tests for the phase schema registry."""

from __future__ import annotations

from datetime import UTC, datetime

import msgspec
import pyarrow as pa
import pytest

from schema_spec.field_spec import SCHEMA_NAME_META, FieldSpec, TableSchemaSpec
from schema_spec.phases import ALL_PHASES, ExtractionPhase
from schema_spec.registry import (
    PHASE_ROW_TYPES,
    phase_schema,
    row_violations,
    rows_from_table,
    rows_to_batch,
)
from schema_spec.rows import BuildRow, EcosystemRow, MetadataRow, VersionHistoryRow


def test_every_phase_has_schema_matching_row_fields() -> None:
    """Ensure each phase schema lists exactly its row struct fields, in order."""
    for phase in ALL_PHASES:
        schema = phase_schema(phase)
        assert tuple(schema.names) == PHASE_ROW_TYPES[phase].__struct_fields__
        assert schema.metadata[SCHEMA_NAME_META] == phase.value.encode()


def test_phase_schema_is_cached() -> None:
    """Ensure repeated lookups return the same schema object."""
    assert phase_schema(ExtractionPhase.BUILD) is phase_schema(ExtractionPhase.BUILD)


def test_schema_types() -> None:
    """Ensure representative column types and nullability."""
    schema = phase_schema(ExtractionPhase.ECOSYSTEM)
    assert schema.field("downloads").type == pa.int64()
    assert not schema.field("downloads").nullable
    assert schema.field("created_at").type == pa.timestamp("us", tz="UTC")
    assert schema.field("keywords").type == pa.list_(pa.string())
    assert phase_schema(ExtractionPhase.METADATA).field("depth").type == pa.int32()


def test_row_violations_accepts_valid_row() -> None:
    """Ensure a conforming row has no violations."""
    row = BuildRow(crate_name="a", crate_version="1.0.0", category="setting", name="edition")
    assert row_violations(ExtractionPhase.BUILD, row) == ()


def test_row_violations_wrong_row_type() -> None:
    """Ensure rows of another phase are rejected."""
    row = BuildRow(crate_name="a", crate_version="1.0.0", category="setting", name="edition")
    (issue,) = row_violations(ExtractionPhase.METADATA, row)
    assert "expected MetadataRow" in issue


def test_row_violations_bad_values() -> None:
    """Ensure nulls, wrong types and out-of-range integers are reported."""
    row = MetadataRow(
        name=None,  # type: ignore[arg-type]
        version="1.0.0",
        depth=2**40,
        keywords=("ok", 3),  # type: ignore[arg-type]
    )
    issues = row_violations(ExtractionPhase.METADATA, row)
    assert len(issues) == 3
    assert any(issue.startswith("name: null") for issue in issues)
    assert any(issue.startswith("depth:") for issue in issues)
    assert any(issue.startswith("keywords:") for issue in issues)


def test_row_violations_naive_timestamp() -> None:
    """Ensure timestamps must be timezone-aware."""
    row = VersionHistoryRow(crate_name="a", version="1.0.0", published_at=datetime(2024, 1, 1))
    (issue,) = row_violations(ExtractionPhase.VERSION_HISTORY, row)
    assert issue.startswith("published_at:")


def test_batch_round_trip() -> None:
    """Ensure rows survive conversion to a record batch and back."""
    rows = [
        EcosystemRow(
            crate_name="serde",
            crate_version="1.0.200",
            downloads=10,
            keywords=("serialization",),
            created_at=datetime(2020, 1, 1, tzinfo=UTC),
        ),
        EcosystemRow(crate_name="other", crate_version="0.1.0"),
    ]
    batch = rows_to_batch(ExtractionPhase.ECOSYSTEM, rows)
    assert batch.schema == phase_schema(ExtractionPhase.ECOSYSTEM)
    restored = rows_from_table(ExtractionPhase.ECOSYSTEM, pa.Table.from_batches([batch]))
    assert restored == rows


def test_table_spec_rejects_duplicates() -> None:
    """Ensure duplicate columns and unknown sort keys fail fast."""
    field = FieldSpec(name="a", dtype=pa.string())
    with pytest.raises(ValueError, match="duplicate field names"):
        TableSchemaSpec(name="t", fields=(field, field))
    with pytest.raises(ValueError, match="unknown sort keys"):
        TableSchemaSpec(name="t", fields=(field,), sort_keys=("b",))


def test_rows_are_tagged_by_phase() -> None:
    """Ensure encoded rows carry their phase identifier."""
    row = BuildRow(crate_name="a", crate_version="1.0.0", category="setting", name="edition")
    payload = msgspec.json.decode(msgspec.json.encode(row))
    assert payload["phase"] == "build"
