"""Pathspec-backed include/exclude filters for crate packaging scans."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, cast

from pathspec import GitIgnoreSpec, PathSpec

ALWAYS_INCLUDED = frozenset({"Cargo.toml"})


@dataclass(frozen=True)
class CratePathspec:
    """Compiled packaging filters for one crate.

    ``package.include`` is an allow-list; when it is set, ``package.exclude``
    and ``.gitignore`` are not consulted (Cargo's packaging rule).
    ``ignore_spec`` holds the crate-root ``.gitignore`` and ``.git/info/exclude``;
    ignore files in subdirectories are compiled during the walk with
    :func:`load_nested_ignore` and passed to :func:`check_crate_path`.
    """

    include_spec: PathSpec | None
    exclude_spec: PathSpec | None
    ignore_spec: GitIgnoreSpec | None


@dataclass(frozen=True)
class PathspecCheck:
    """Decision and the pattern index that produced it."""

    include: bool
    reason: str
    index: int | None = None


class _CheckResult(Protocol):
    include: bool | None
    index: int | None


def build_crate_pathspec(
    crate_root: Path,
    *,
    include_globs: Sequence[str],
    exclude_globs: Sequence[str],
) -> CratePathspec:
    """Compile packaging filters for a crate directory.

    Returns
    -------
    CratePathspec
        Compiled pathspec filters.
    """
    include_lines = list(include_globs)
    exclude_lines = list(exclude_globs)
    from_lines = cast("Callable[[str, Iterable[str]], PathSpec]", PathSpec.from_lines)
    if include_lines:
        return CratePathspec(
            include_spec=from_lines("gitwildmatch", include_lines),
            exclude_spec=None,
            ignore_spec=None,
        )
    exclude_spec = from_lines("gitwildmatch", exclude_lines) if exclude_lines else None
    return CratePathspec(
        include_spec=None,
        exclude_spec=exclude_spec,
        ignore_spec=_gitignore_spec(crate_root),
    )


def check_crate_path(
    rel_path: Path,
    *,
    filters: CratePathspec,
    nested_ignores: Mapping[str, GitIgnoreSpec] | None = None,
) -> PathspecCheck:
    """Return the packaging decision for a crate-relative file path.

    Parameters
    ----------
    rel_path
        Crate-relative file path.
    filters
        Compiled crate filters.
    nested_ignores
        Subdirectory ``.gitignore`` specs keyed by crate-relative POSIX
        directory. The deepest ignore file with a matching pattern decides,
        ahead of the crate-root one.

    Returns
    -------
    PathspecCheck
        Decision payload for the path.
    """
    rel_posix = rel_path.as_posix()
    if rel_posix in ALWAYS_INCLUDED:
        return PathspecCheck(include=True, reason="manifest")
    include_result = _check_spec(filters.include_spec, rel_posix)
    if include_result is not None:
        return PathspecCheck(
            include=include_result.include is True,
            reason="include",
            index=include_result.index,
        )
    exclude_result = _check_spec(filters.exclude_spec, rel_posix)
    if exclude_result is not None and exclude_result.include is True:
        return PathspecCheck(include=False, reason="exclude", index=exclude_result.index)
    if nested_ignores:
        nested = _check_nested(rel_path, nested_ignores)
        if nested is not None:
            return nested
    ignore_result = _check_spec(filters.ignore_spec, rel_posix)
    if ignore_result is not None and ignore_result.include is True:
        return PathspecCheck(include=False, reason="gitignore", index=ignore_result.index)
    return PathspecCheck(include=True, reason="default")


def should_include_crate_path(
    rel_path: Path,
    *,
    filters: CratePathspec,
    nested_ignores: Mapping[str, GitIgnoreSpec] | None = None,
) -> bool:
    """Return True when a crate-relative path is part of the package.

    Returns
    -------
    bool
        ``True`` when the path should be included.
    """
    return check_crate_path(rel_path, filters=filters, nested_ignores=nested_ignores).include


def load_nested_ignore(directory: Path) -> GitIgnoreSpec | None:
    """Compile ``directory/.gitignore``; patterns are relative to ``directory``.

    Returns
    -------
    GitIgnoreSpec | None
        Compiled spec, or ``None`` when the directory has no ignore file.
    """
    ignore_file = directory / ".gitignore"
    if not ignore_file.is_file():
        return None
    lines = _read_lines(ignore_file)
    if not lines:
        return None
    ignore_from_lines = cast("Callable[[Iterable[str]], GitIgnoreSpec]", GitIgnoreSpec.from_lines)
    return ignore_from_lines(lines)


def _check_nested(
    rel_path: Path, nested_ignores: Mapping[str, GitIgnoreSpec]
) -> PathspecCheck | None:
    for parent in rel_path.parents:
        key = parent.as_posix()
        spec = nested_ignores.get(key)
        if spec is None or key == ".":
            continue
        result = _check_spec(spec, rel_path.relative_to(parent).as_posix())
        if result is None or result.include is None:
            continue
        if result.include:
            return PathspecCheck(include=False, reason="gitignore", index=result.index)
        return PathspecCheck(include=True, reason="gitignore-negated", index=result.index)
    return None


def _gitignore_spec(crate_root: Path) -> GitIgnoreSpec | None:
    lines = _gitignore_lines(crate_root)
    if not lines:
        return None
    ignore_from_lines = cast("Callable[[Iterable[str]], GitIgnoreSpec]", GitIgnoreSpec.from_lines)
    return ignore_from_lines(lines)


def _gitignore_lines(crate_root: Path) -> list[str]:
    lines: list[str] = []
    root_ignore = crate_root / ".gitignore"
    if root_ignore.is_file():
        lines.extend(_read_lines(root_ignore))
    git_dir = _resolve_git_dir(crate_root)
    if git_dir is not None:
        info_ignore = git_dir / "info" / "exclude"
        if info_ignore.is_file():
            lines.extend(_read_lines(info_ignore))
    return lines


def _resolve_git_dir(crate_root: Path) -> Path | None:
    git_entry = crate_root / ".git"
    if git_entry.is_dir():
        return git_entry
    if not git_entry.is_file():
        return None
    for raw_line in _read_lines(git_entry):
        stripped = raw_line.strip()
        if stripped.startswith("gitdir:"):
            git_dir = Path(stripped[len("gitdir:") :].strip())
            if not git_dir.is_absolute():
                git_dir = (crate_root / git_dir).resolve()
            return git_dir
    return None


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []


def _check_spec(spec: PathSpec | GitIgnoreSpec | None, path: str) -> _CheckResult | None:
    if spec is None:
        return None
    result = spec.check_file(path)
    return cast("_CheckResult", result)


__all__ = [
    "ALWAYS_INCLUDED",
    "CratePathspec",
    "PathspecCheck",
    "build_crate_pathspec",
    "check_crate_path",
    "load_nested_ignore",
    "should_include_crate_path",
]
