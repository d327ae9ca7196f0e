"""Phase schema registry.

Maps every :class:`ExtractionPhase` to its table spec and row struct, and
checks rows against those specs before they reach a writer.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Final

import msgspec
import pyarrow as pa

from schema_spec.field_spec import FieldSpec, TableSchemaSpec
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import (
    BuildRow,
    DependencyRow,
    EcosystemRow,
    ExtractedRow,
    MetadataRow,
    SourceFileRow,
    VersionHistoryRow,
)

STRING = pa.string()
STRING_LIST = pa.list_(pa.string())
INT32 = pa.int32()
INT64 = pa.int64()
BOOL = pa.bool_()
TIMESTAMP_UTC = pa.timestamp("us", tz="UTC")

_INT32_RANGE = (-(2**31), 2**31 - 1)
_INT64_RANGE = (-(2**63), 2**63 - 1)


def _required(name: str, dtype: pa.DataType) -> FieldSpec:
    return FieldSpec(name=name, dtype=dtype, nullable=False)


def _optional(name: str, dtype: pa.DataType) -> FieldSpec:
    return FieldSpec(name=name, dtype=dtype, nullable=True)


METADATA_SPEC = TableSchemaSpec(
    name=ExtractionPhase.METADATA.value,
    fields=(
        _required("name", STRING),
        _required("version", STRING),
        _required("authors", STRING_LIST),
        _optional("license", STRING),
        _optional("description", STRING),
        _required("keywords", STRING_LIST),
        _required("categories", STRING_LIST),
        _optional("edition", STRING),
        _optional("rust_version", STRING),
        _optional("repository", STRING),
        _optional("homepage", STRING),
        _optional("documentation", STRING),
        _optional("readme", STRING),
        _optional("license_file", STRING),
        _required("publish", BOOL),
        _required("manifest_path", STRING),
        _required("is_root", BOOL),
        _required("depth", INT32),
        _required("resolved_via", STRING_LIST),
    ),
    sort_keys=("name", "version"),
)

DEPENDENCIES_SPEC = TableSchemaSpec(
    name=ExtractionPhase.DEPENDENCIES.value,
    fields=(
        _required("source_name", STRING),
        _required("source_version", STRING),
        _required("dependency_name", STRING),
        _optional("version_req", STRING),
        _required("kind", STRING),
        _required("optional", BOOL),
        _required("default_features", BOOL),
        _required("features", STRING_LIST),
        _optional("target", STRING),
        _required("source_kind", STRING),
        _optional("source_location", STRING),
        _optional("alias", STRING),
    ),
    sort_keys=("source_name", "source_version"),
)

SOURCE_CODE_SPEC = TableSchemaSpec(
    name=ExtractionPhase.SOURCE_CODE.value,
    fields=(
        _required("crate_name", STRING),
        _required("crate_version", STRING),
        _required("path", STRING),
        _required("size_bytes", INT64),
        _optional("language", STRING),
        _required("line_count", INT64),
        _required("code_lines", INT64),
        _required("comment_lines", INT64),
        _required("blank_lines", INT64),
        _required("is_binary", BOOL),
        _required("content_sha256", STRING),
    ),
    sort_keys=("crate_name", "crate_version", "path"),
)

BUILD_SPEC = TableSchemaSpec(
    name=ExtractionPhase.BUILD.value,
    fields=(
        _required("crate_name", STRING),
        _required("crate_version", STRING),
        _required("category", STRING),
        _required("name", STRING),
        _optional("value", STRING),
        _required("detail", STRING_LIST),
    ),
    sort_keys=("crate_name", "crate_version"),
)

ECOSYSTEM_SPEC = TableSchemaSpec(
    name=ExtractionPhase.ECOSYSTEM.value,
    fields=(
        _required("crate_name", STRING),
        _required("crate_version", STRING),
        _required("downloads", INT64),
        _optional("recent_downloads", INT64),
        _optional("version_downloads", INT64),
        _optional("reverse_dependency_count", INT64),
        _required("categories", STRING_LIST),
        _required("keywords", STRING_LIST),
        _optional("max_version", STRING),
        _optional("repository", STRING),
        _optional("homepage", STRING),
        _optional("documentation", STRING),
        _optional("created_at", TIMESTAMP_UTC),
        _optional("updated_at", TIMESTAMP_UTC),
    ),
    sort_keys=("crate_name", "crate_version"),
)

VERSION_HISTORY_SPEC = TableSchemaSpec(
    name=ExtractionPhase.VERSION_HISTORY.value,
    fields=(
        _required("crate_name", STRING),
        _required("version", STRING),
        _optional("published_at", TIMESTAMP_UTC),
        _required("yanked", BOOL),
        _required("downloads", INT64),
        _optional("license", STRING),
        _optional("crate_size", INT64),
        _optional("rust_version", STRING),
    ),
    sort_keys=("crate_name",),
)

PHASE_TABLE_SPECS: Final[Mapping[ExtractionPhase, TableSchemaSpec]] = {
    ExtractionPhase.METADATA: METADATA_SPEC,
    ExtractionPhase.DEPENDENCIES: DEPENDENCIES_SPEC,
    ExtractionPhase.SOURCE_CODE: SOURCE_CODE_SPEC,
    ExtractionPhase.BUILD: BUILD_SPEC,
    ExtractionPhase.ECOSYSTEM: ECOSYSTEM_SPEC,
    ExtractionPhase.VERSION_HISTORY: VERSION_HISTORY_SPEC,
}

PHASE_ROW_TYPES: Final[Mapping[ExtractionPhase, type[ExtractedRow]]] = {
    ExtractionPhase.METADATA: MetadataRow,
    ExtractionPhase.DEPENDENCIES: DependencyRow,
    ExtractionPhase.SOURCE_CODE: SourceFileRow,
    ExtractionPhase.BUILD: BuildRow,
    ExtractionPhase.ECOSYSTEM: EcosystemRow,
    ExtractionPhase.VERSION_HISTORY: VersionHistoryRow,
}

_SCHEMA_CACHE: dict[ExtractionPhase, pa.Schema] = {}


def phase_schema(phase: ExtractionPhase) -> pa.Schema:
    """Return the Arrow schema for a phase.

    Returns
    -------
    pyarrow.Schema
        Cached schema; every file written for the phase uses exactly this layout.
    """
    schema = _SCHEMA_CACHE.get(phase)
    if schema is None:
        schema = PHASE_TABLE_SPECS[phase].to_arrow_schema()
        _SCHEMA_CACHE[phase] = schema
    return schema


def row_type(phase: ExtractionPhase) -> type[ExtractedRow]:
    """Return the row struct emitted for a phase."""
    return PHASE_ROW_TYPES[phase]


def _value_issue(spec: FieldSpec, value: object) -> str | None:
    if value is None:
        return None if spec.nullable else f"{spec.name}: null in non-nullable column"
    dtype = spec.dtype
    if pa.types.is_string(dtype):
        ok = isinstance(value, str)
    elif pa.types.is_boolean(dtype):
        ok = isinstance(value, bool)
    elif pa.types.is_integer(dtype):
        low, high = _INT32_RANGE if dtype == INT32 else _INT64_RANGE
        ok = isinstance(value, int) and not isinstance(value, bool) and low <= value <= high
    elif pa.types.is_timestamp(dtype):
        ok = isinstance(value, datetime) and value.tzinfo is not None
    elif pa.types.is_list(dtype):
        ok = isinstance(value, (tuple, list)) and all(isinstance(item, str) for item in value)
    else:
        ok = False
    if ok:
        return None
    return f"{spec.name}: {type(value).__name__} value {value!r} does not fit {dtype}"


def row_violations(phase: ExtractionPhase, row: object) -> tuple[str, ...]:
    """Return every way ``row`` fails to conform to the phase schema.

    Checks the row type, the field count and names against the schema, and
    each value's type and nullability.

    Returns
    -------
    tuple[str, ...]
        Human-readable problems; empty when the row conforms.
    """
    expected_type = PHASE_ROW_TYPES[phase]
    if type(row) is not expected_type:
        return (f"expected {expected_type.__name__}, got {type(row).__name__}",)
    spec = PHASE_TABLE_SPECS[phase]
    names = row.__struct_fields__
    if len(names) != len(spec.fields):
        return (f"row has {len(names)} fields, schema has {len(spec.fields)}",)
    if names != spec.field_names:
        return (f"field names {names} do not match schema {spec.field_names}",)
    issues = [
        issue
        for field in spec.fields
        if (issue := _value_issue(field, getattr(row, field.name))) is not None
    ]
    return tuple(issues)


def row_to_record(row: ExtractedRow) -> dict[str, object]:
    """Return a column-name mapping for one row, lists as Python lists."""
    record = msgspec.structs.asdict(row)
    for key, value in record.items():
        if isinstance(value, tuple):
            record[key] = list(value)
    return record


def rows_to_batch(phase: ExtractionPhase, rows: Sequence[ExtractedRow]) -> pa.RecordBatch:
    """Convert rows of one phase into a record batch with the phase schema."""
    return pa.RecordBatch.from_pylist([row_to_record(row) for row in rows], schema=phase_schema(phase))


def rows_from_table(phase: ExtractionPhase, table: pa.Table) -> list[ExtractedRow]:
    """Rebuild row structs from a table written with the phase schema."""
    target = PHASE_ROW_TYPES[phase]
    return [
        msgspec.convert({**record, "phase": phase.value}, target) for record in table.to_pylist()
    ]


__all__ = [
    "PHASE_ROW_TYPES",
    "PHASE_TABLE_SPECS",
    "phase_schema",
    "row_to_record",
    "row_type",
    "row_violations",
    "rows_from_table",
    "rows_to_batch",
]
