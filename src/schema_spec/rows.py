"""Row structs emitted by the phase extractors.

Each struct is tagged with its phase identifier, so ``ExtractedRow`` decodes
as a tagged union. Field order matches the phase schema column order.
"""

from __future__ import annotations

from datetime import datetime

from serde_msgspec import StructBaseHotPath


class _PhaseRow(StructBaseHotPath, frozen=True, tag_field="phase"):
    """Common base for phase rows."""


class MetadataRow(_PhaseRow, frozen=True, tag="metadata"):
    """One crate's package metadata."""

    name: str
    version: str
    authors: tuple[str, ...] = ()
    license: str | None = None
    description: str | None = None
    keywords: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    edition: str | None = None
    rust_version: str | None = None
    repository: str | None = None
    homepage: str | None = None
    documentation: str | None = None
    readme: str | None = None
    license_file: str | None = None
    publish: bool = True
    manifest_path: str = ""
    is_root: bool = False
    depth: int = 0
    resolved_via: tuple[str, ...] = ()


class DependencyRow(_PhaseRow, frozen=True, tag="dependencies"):
    """One declared dependency edge."""

    source_name: str
    source_version: str
    dependency_name: str
    version_req: str | None = None
    kind: str = "normal"
    optional: bool = False
    default_features: bool = True
    features: tuple[str, ...] = ()
    target: str | None = None
    source_kind: str = "registry"
    source_location: str | None = None
    alias: str | None = None


class SourceFileRow(_PhaseRow, frozen=True, tag="source_code"):
    """One packaged file of a crate."""

    crate_name: str
    crate_version: str
    path: str
    size_bytes: int
    language: str | None = None
    line_count: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    is_binary: bool = False
    content_sha256: str = ""


class BuildRow(_PhaseRow, frozen=True, tag="build"):
    """One build-relevant setting."""

    crate_name: str
    crate_version: str
    category: str
    name: str
    value: str | None = None
    detail: tuple[str, ...] = ()


class EcosystemRow(_PhaseRow, frozen=True, tag="ecosystem"):
    """Registry-side context for one published crate version."""

    crate_name: str
    crate_version: str
    downloads: int = 0
    recent_downloads: int | None = None
    version_downloads: int | None = None
    reverse_dependency_count: int | None = None
    categories: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    max_version: str | None = None
    repository: str | None = None
    homepage: str | None = None
    documentation: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VersionHistoryRow(_PhaseRow, frozen=True, tag="version_history"):
    """One published version of a crate."""

    crate_name: str
    version: str
    published_at: datetime | None = None
    yanked: bool = False
    downloads: int = 0
    license: str | None = None
    crate_size: int | None = None
    rust_version: str | None = None


type ExtractedRow = (
    MetadataRow | DependencyRow | SourceFileRow | BuildRow | EcosystemRow | VersionHistoryRow
)


__all__ = [
    "BuildRow",
    "DependencyRow",
    "EcosystemRow",
    "ExtractedRow",
    "MetadataRow",
    "SourceFileRow",
    "VersionHistoryRow",
]
