"""Tests for the ecosystem and version history extractors."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import pytest

from cargo_manifest.parse import load_project
from crates_registry.client import RegistryError
from extract.ecosystem_extract import EcosystemExtractor
from extract.registry_extractors import ExtractorContext, build_extractors, needs_network
from extract.targets import ExtractionTarget
from extract.version_history_extract import VersionHistoryExtractor
from schema_spec.phases import ExtractionPhase
from schema_spec.registry import row_violations
from tests.test_helpers.crates import write_crate
from tests.test_helpers.registry import FakeCratesIo, crate_payload


def _target(root: Path) -> ExtractionTarget:
    return ExtractionTarget(project=load_project(root), is_root=True)


def test_ecosystem_row(demo_crate: Path) -> None:
    """Ensure registry facts and the target version's downloads are combined."""
    fake = FakeCratesIo(
        {
            "/api/v1/crates/demo": crate_payload(
                "demo",
                max_version="0.2.0",
                downloads=5000,
                versions=[
                    {"num": "0.2.0", "downloads": 100},
                    {"num": "0.1.0", "downloads": 7},
                ],
            ),
            "/api/v1/crates/demo/reverse_dependencies": {"meta": {"total": 5}},
        }
    )

    async def scenario() -> list[object]:
        client = fake.client()
        try:
            return list(await EcosystemExtractor(client).extract(_target(demo_crate)))
        finally:
            await client.aclose()

    (row,) = asyncio.run(scenario())
    assert row.crate_name == "demo"
    assert row.crate_version == "0.1.0"
    assert row.downloads == 5000
    assert row.recent_downloads == 500
    assert row.version_downloads == 7
    assert row.reverse_dependency_count == 5
    assert row.max_version == "0.2.0"
    assert row.keywords == ("parsing",)
    assert row.created_at == datetime(2020, 1, 1, tzinfo=UTC)
    assert row_violations(ExtractionPhase.ECOSYSTEM, row) == ()


def test_unpublished_crates_skip_registry(tmp_path: Path) -> None:
    """Ensure ``publish = false`` crates produce no rows and no requests."""
    root = write_crate(tmp_path / "private", "private", package_extra="publish = false")
    fake = FakeCratesIo()

    async def scenario() -> tuple[list[object], list[object]]:
        client = fake.client()
        try:
            eco = list(await EcosystemExtractor(client).extract(_target(root)))
            history = list(await VersionHistoryExtractor(client).extract(_target(root)))
        finally:
            await client.aclose()
        return eco, history

    assert asyncio.run(scenario()) == ([], [])
    assert fake.requests == []


def test_ecosystem_unknown_crate_raises(demo_crate: Path) -> None:
    """Ensure a crate missing from the registry fails the target."""
    fake = FakeCratesIo()

    async def scenario() -> None:
        client = fake.client()
        try:
            await EcosystemExtractor(client).extract(_target(demo_crate))
        finally:
            await client.aclose()

    with pytest.raises(RegistryError):
        asyncio.run(scenario())


def test_version_history_oldest_first(demo_crate: Path) -> None:
    """Ensure versions are emitted in publication order, oldest first."""
    fake = FakeCratesIo(
        {
            "/api/v1/crates/demo/versions": {
                "versions": [
                    {"num": "0.2.0", "created_at": "2024-01-01T00:00:00Z", "downloads": 3},
                    {"num": "0.1.1", "created_at": "2023-06-01T00:00:00Z", "yanked": True},
                    {"num": "0.1.0", "created_at": "2023-01-01T00:00:00Z", "license": "MIT"},
                ],
                "meta": {"total": 3, "next_page": None},
            }
        }
    )

    async def scenario() -> list[object]:
        client = fake.client()
        try:
            return list(await VersionHistoryExtractor(client).extract(_target(demo_crate)))
        finally:
            await client.aclose()

    rows = asyncio.run(scenario())
    assert [row.version for row in rows] == ["0.1.0", "0.1.1", "0.2.0"]
    assert rows[0].license == "MIT"
    assert rows[1].yanked is True
    assert rows[2].published_at == datetime(2024, 1, 1, tzinfo=UTC)
    assert all(row.crate_name == "demo" for row in rows)
    assert all(row_violations(ExtractionPhase.VERSION_HISTORY, row) == () for row in rows)


def test_build_extractors_requires_client_for_network_phases() -> None:
    """Ensure network extractors cannot be built without a registry client."""
    assert needs_network([ExtractionPhase.METADATA, ExtractionPhase.ECOSYSTEM])
    assert not needs_network([ExtractionPhase.METADATA, ExtractionPhase.BUILD])
    with pytest.raises(ValueError, match="needs a registry client"):
        build_extractors([ExtractionPhase.VERSION_HISTORY], ExtractorContext())
    extractors = build_extractors(
        [ExtractionPhase.BUILD, ExtractionPhase.METADATA], ExtractorContext()
    )
    assert list(extractors) == [ExtractionPhase.BUILD, ExtractionPhase.METADATA]
