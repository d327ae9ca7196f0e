"""Parquet storage for extracted phase tables."""

from __future__ import annotations

from storage.columnar_writer import (
    DEFAULT_BATCH_SIZE,
    ColumnarWriter,
    PhaseFileSummary,
    read_phase_rows,
)
from storage.parquet import ParquetWriteOptions, read_table_parquet

__all__ = (
    "DEFAULT_BATCH_SIZE",
    "ColumnarWriter",
    "ParquetWriteOptions",
    "PhaseFileSummary",
    "read_phase_rows",
    "read_table_parquet",
)
