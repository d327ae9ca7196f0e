"""Filesystem listing of the files a crate would package."""

from __future__ import annotations

import os
from collections.abc import Collection, Iterator
from pathlib import Path

from pathspec import GitIgnoreSpec

from extract.pathspec_filters import CratePathspec, load_nested_ignore, should_include_crate_path

PRUNED_DIRS = frozenset({".git"})
PRUNED_ROOT_DIRS = frozenset({"target"})


def _prune_dirs(
    root_path: Path,
    dirs: list[str],
    *,
    at_root: bool,
    follow_symlinks: bool,
    skip_dirs: Collection[Path],
) -> None:
    kept: list[str] = []
    for name in dirs:
        candidate = root_path / name
        if name in PRUNED_DIRS or (at_root and name in PRUNED_ROOT_DIRS):
            continue
        if not follow_symlinks and candidate.is_symlink():
            continue
        if skip_dirs and candidate.resolve() in skip_dirs:
            continue
        if (candidate / "Cargo.toml").is_file():
            # Nested package; it is packaged on its own.
            continue
        kept.append(name)
    dirs[:] = sorted(kept)


def iter_crate_files(
    crate_root: Path,
    *,
    filters: CratePathspec,
    follow_symlinks: bool = False,
    skip_dirs: Collection[Path] = (),
) -> Iterator[Path]:
    """Yield crate-relative file paths that belong to the package.

    Parameters
    ----------
    crate_root : Path
        Directory holding the crate's ``Cargo.toml``.
    filters : CratePathspec
        Compiled include/exclude/gitignore filters.
    follow_symlinks : bool
        Whether to follow symlinked directories and files.
    skip_dirs : Collection[Path]
        Directories never walked, such as the run's own output directory.

    Yields
    ------
    Path
        Crate-relative file paths, in walk order.
    """
    crate_root = crate_root.resolve()
    skipped = frozenset(path.resolve() for path in skip_dirs)
    nested_ignores: dict[str, GitIgnoreSpec] = {}
    for root, dirs, files in os.walk(crate_root, followlinks=follow_symlinks):
        root_path = Path(root)
        at_root = root_path == crate_root
        _prune_dirs(
            root_path,
            dirs,
            at_root=at_root,
            follow_symlinks=follow_symlinks,
            skip_dirs=skipped,
        )
        if not at_root and filters.include_spec is None:
            spec = load_nested_ignore(root_path)
            if spec is not None:
                nested_ignores[root_path.relative_to(crate_root).as_posix()] = spec
        for filename in sorted(files):
            abs_path = root_path / filename
            if not follow_symlinks and abs_path.is_symlink():
                continue
            rel = abs_path.relative_to(crate_root)
            if should_include_crate_path(rel, filters=filters, nested_ignores=nested_ignores):
                yield rel


def list_crate_files(
    crate_root: Path,
    *,
    filters: CratePathspec,
    follow_symlinks: bool = False,
    skip_dirs: Collection[Path] = (),
) -> list[Path]:
    """Return packaged files sorted by their POSIX path."""
    files = iter_crate_files(
        crate_root, filters=filters, follow_symlinks=follow_symlinks, skip_dirs=skip_dirs
    )
    return sorted(files, key=lambda path: path.as_posix())


__all__ = ["PRUNED_DIRS", "PRUNED_ROOT_DIRS", "iter_crate_files", "list_crate_files"]
