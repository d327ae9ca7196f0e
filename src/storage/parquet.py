"""Parquet read/write helpers for Arrow tables."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from utils.file_io import PathLike, ensure_path


@dataclass(frozen=True)
class ParquetWriteOptions:
    """
    “Reasonable defaults” for Parquet phase files.

    Notes
    -----
      - compression="zstd" is usually a good trade-off for speed/size.
      - use_dictionary=True helps with repetitive crate-name/kind columns.
      - write_statistics=True helps pushdown + debugging.
    """

    compression: str = "zstd"
    use_dictionary: bool = True
    write_statistics: bool = True
    data_page_size: int | None = None
    allow_truncated_timestamps: bool = True


def _ensure_dir(path: Path) -> None:
    path.mkdir(exist_ok=True, parents=True)


def partial_path(path: Path) -> Path:
    """Return the sibling path a file is staged under until it is finalized."""
    return path.with_name(f".{path.name}.partial")


def open_parquet_writer(
    path: PathLike,
    schema: pa.Schema,
    *,
    opts: ParquetWriteOptions | None = None,
) -> pq.ParquetWriter:
    """Open an incremental writer for one Parquet file.

    The parent directory is created when missing.

    Returns
    -------
    pyarrow.parquet.ParquetWriter
        Writer bound to ``path``; call ``close()`` to write the footer.
    """
    options = opts or ParquetWriteOptions()
    target = ensure_path(path)
    _ensure_dir(target.parent)
    return pq.ParquetWriter(
        str(target),
        schema,
        compression=options.compression,
        use_dictionary=options.use_dictionary,
        write_statistics=options.write_statistics,
        data_page_size=options.data_page_size,
        allow_truncated_timestamps=options.allow_truncated_timestamps,
    )


def read_table_parquet(path: PathLike) -> pa.Table:
    """Read a single Parquet file into a table.

    Returns
    -------
    pyarrow.Table
        Loaded table.
    """
    return pq.read_table(str(ensure_path(path)))


__all__ = [
    "ParquetWriteOptions",
    "open_parquet_writer",
    "partial_path",
    "read_table_parquet",
]
