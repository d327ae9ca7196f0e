"""Phase identifiers, row structs, and their column layouts."""

from __future__ import annotations

from schema_spec.field_spec import FieldSpec, TableSchemaSpec
from schema_spec.phases import (
    ALL_PHASES,
    DEFAULT_PHASES_ARG,
    ExtractionPhase,
    parse_phases,
)
from schema_spec.registry import (
    PHASE_ROW_TYPES,
    PHASE_TABLE_SPECS,
    phase_schema,
    row_type,
    row_violations,
    rows_from_table,
    rows_to_batch,
)
from schema_spec.rows import (
    BuildRow,
    DependencyRow,
    EcosystemRow,
    ExtractedRow,
    MetadataRow,
    SourceFileRow,
    VersionHistoryRow,
)

__all__ = [
    "ALL_PHASES",
    "DEFAULT_PHASES_ARG",
    "PHASE_ROW_TYPES",
    "PHASE_TABLE_SPECS",
    "BuildRow",
    "DependencyRow",
    "EcosystemRow",
    "ExtractedRow",
    "ExtractionPhase",
    "FieldSpec",
    "MetadataRow",
    "SourceFileRow",
    "TableSchemaSpec",
    "VersionHistoryRow",
    "parse_phases",
    "phase_schema",
    "row_type",
    "row_violations",
    "rows_from_table",
    "rows_to_batch",
]
