"""Tests for mapping dependency declarations to crate roots."""

from __future__ import annotations

from pathlib import Path

import pytest

from cargo_manifest.errors import DependencyNotFoundError
from cargo_manifest.locator import DependencyLocator, default_registry_roots
from cargo_manifest.lockfile import load_lockfile
from cargo_manifest.parse import load_project
from tests.test_helpers.crates import write_crate, write_lockfile, write_registry_crate


def _registry(home: Path) -> Path:
    root = home / "registry" / "src" / "index.crates.io-6f17d22bba15001f"
    root.mkdir(parents=True)
    return root


def test_default_registry_roots(isolated_env: Path) -> None:
    """Ensure per-index source directories are discovered under cargo home."""
    assert default_registry_roots(isolated_env) == ()
    root = _registry(isolated_env)
    assert default_registry_roots(isolated_env) == (root,)
    assert default_registry_roots() == (root,)


def test_locate_path_dependency(tmp_path: Path) -> None:
    """Ensure path dependencies resolve relative to the declaring crate."""
    write_crate(tmp_path / "local", "local")
    app = write_crate(tmp_path / "app", "app", manifest='[dependencies]\nlocal = { path = "../local" }')
    project = load_project(app)
    locator = DependencyLocator(None, registry_roots=())
    assert locator.locate(project, project.dependencies[0]) == (tmp_path / "local").resolve()


def test_locate_path_dependency_missing(tmp_path: Path) -> None:
    """Ensure a path dependency without a manifest is not found."""
    app = write_crate(tmp_path / "app", "app", manifest='[dependencies]\ngone = { path = "../gone" }')
    project = load_project(app)
    locator = DependencyLocator(None, registry_roots=())
    with pytest.raises(DependencyNotFoundError, match="has no Cargo.toml"):
        locator.locate(project, project.dependencies[0])


def test_locate_registry_dependency(tmp_path: Path, isolated_env: Path) -> None:
    """Ensure registry dependencies use the locked version and the unpacked cache."""
    registry = _registry(isolated_env)
    write_registry_crate(registry, "serde", "1.0.200")
    app = write_crate(tmp_path / "app", "app", manifest='[dependencies]\nserde = "1.0"')
    write_lockfile(app, [("app", "0.1.0", ["serde"]), ("serde", "1.0.200", [])])
    project = load_project(app)
    locator = DependencyLocator(load_lockfile(app / "Cargo.lock"), registry_roots=(registry,))
    assert locator.locate(project, project.dependencies[0]) == registry / "serde-1.0.200"


def test_locate_registry_dependency_without_lock(tmp_path: Path) -> None:
    """Ensure registry dependencies need an exact locked version."""
    app = write_crate(tmp_path / "app", "app", manifest='[dependencies]\nserde = "1.0"')
    project = load_project(app)
    locator = DependencyLocator(None, registry_roots=())
    with pytest.raises(DependencyNotFoundError, match="Cargo.lock"):
        locator.locate(project, project.dependencies[0])


def test_locate_registry_dependency_not_unpacked(tmp_path: Path) -> None:
    """Ensure a locked version missing from the cache is not found."""
    app = write_crate(tmp_path / "app", "app", manifest='[dependencies]\nserde = "1.0"')
    write_lockfile(app, [("serde", "1.0.200", [])])
    project = load_project(app)
    locator = DependencyLocator(load_lockfile(app / "Cargo.lock"), registry_roots=())
    with pytest.raises(DependencyNotFoundError, match="serde-1.0.200 is not unpacked"):
        locator.locate(project, project.dependencies[0])


def test_git_dependency_never_fetched(tmp_path: Path) -> None:
    """Ensure git dependencies are reported instead of fetched."""
    app = write_crate(
        tmp_path / "app",
        "app",
        manifest='[dependencies]\nremote = { git = "https://example.com/r.git" }',
    )
    project = load_project(app)
    locator = DependencyLocator(None, registry_roots=())
    with pytest.raises(DependencyNotFoundError, match="git dependency"):
        locator.locate(project, project.dependencies[0])
