"""crates.io API payloads.

Only the fields the extractors read are declared; unknown fields are ignored
so registry-side additions never break decoding.
"""

from __future__ import annotations

from datetime import UTC, datetime

import msgspec

from serde_msgspec import StructBaseCompat


def as_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class CrateSummary(StructBaseCompat, frozen=True):
    """The ``crate`` object of ``GET /api/v1/crates/{name}``."""

    name: str
    downloads: int = 0
    recent_downloads: int | None = None
    max_version: str | None = None
    max_stable_version: str | None = None
    newest_version: str | None = None
    description: str | None = None
    homepage: str | None = None
    documentation: str | None = None
    repository: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CrateKeyword(StructBaseCompat, frozen=True):
    """Keyword entry attached to a crate."""

    id: str
    keyword: str | None = None


class CrateCategory(StructBaseCompat, frozen=True):
    """Category entry attached to a crate."""

    id: str
    category: str | None = None
    slug: str | None = None


class CrateVersion(StructBaseCompat, frozen=True):
    """One published version."""

    num: str
    created_at: datetime | None = None
    yanked: bool = False
    downloads: int = 0
    license: str | None = None
    crate_size: int | None = None
    rust_version: str | None = None


class CrateResponse(StructBaseCompat, frozen=True):
    """Full ``GET /api/v1/crates/{name}`` response."""

    crate: CrateSummary
    versions: tuple[CrateVersion, ...] | None = None
    keywords: tuple[CrateKeyword, ...] | None = None
    categories: tuple[CrateCategory, ...] | None = None

    def version(self, num: str) -> CrateVersion | None:
        """Return the embedded version entry for ``num``, if present."""
        for entry in self.versions or ():
            if entry.num == num:
                return entry
        return None

    def keyword_names(self) -> tuple[str, ...]:
        """Return keyword strings in registry order."""
        return tuple(entry.keyword or entry.id for entry in self.keywords or ())

    def category_slugs(self) -> tuple[str, ...]:
        """Return category slugs in registry order."""
        return tuple(entry.slug or entry.id for entry in self.categories or ())


class PageMeta(StructBaseCompat, frozen=True):
    """Pagination metadata shared by list endpoints."""

    total: int | None = None
    next_page: str | None = None


class VersionsPage(StructBaseCompat, frozen=True):
    """One page of ``GET /api/v1/crates/{name}/versions``."""

    versions: tuple[CrateVersion, ...] = ()
    meta: PageMeta = msgspec.field(default_factory=PageMeta)


class ReverseDependenciesPage(StructBaseCompat, frozen=True):
    """``GET /api/v1/crates/{name}/reverse_dependencies`` (only ``meta.total`` is read)."""

    meta: PageMeta = msgspec.field(default_factory=PageMeta)


__all__ = [
    "as_utc",
    "CrateCategory",
    "CrateKeyword",
    "CrateResponse",
    "CrateSummary",
    "CrateVersion",
    "PageMeta",
    "ReverseDependenciesPage",
    "VersionsPage",
]
