"""Cargo manifest, workspace, and lockfile loading."""

from __future__ import annotations

from cargo_manifest.errors import DependencyNotFoundError, ManifestError
from cargo_manifest.lockfile import CargoLock, LockedPackage, find_lockfile, load_lockfile
from cargo_manifest.locator import DependencyLocator, default_registry_roots
from cargo_manifest.models import (
    DeclaredDependency,
    DependencyKind,
    Project,
    SourceKind,
    TargetSpec,
)
from cargo_manifest.parse import load_project, manifest_path_for

__all__ = [
    "CargoLock",
    "DeclaredDependency",
    "DependencyKind",
    "DependencyLocator",
    "DependencyNotFoundError",
    "LockedPackage",
    "ManifestError",
    "Project",
    "SourceKind",
    "TargetSpec",
    "default_registry_roots",
    "find_lockfile",
    "load_lockfile",
    "load_project",
    "manifest_path_for",
]
