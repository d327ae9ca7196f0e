"""Tests for packaged-file scanning and source rows."""

from __future__ import annotations

import hashlib
from pathlib import Path

from cargo_manifest.parse import load_project
from extract.pathspec_filters import build_crate_pathspec, check_crate_path
from extract.source_extract import SourceCodeExtractor
from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.registry import row_violations
from tests.test_helpers.crates import DEFAULT_LIB, write_crate


def _rows(root: Path) -> dict[str, object]:
    target = ExtractionTarget(project=load_project(root), is_root=True)
    return {row.path: row for row in SourceCodeExtractor().extract(target)}


def _scanned_crate(tmp_path: Path) -> Path:
    root = write_crate(
        tmp_path / "scan",
        "scan",
        files={
            ".gitignore": "*.log\n",
            "debug.log": "noise\n",
            "secret.txt": "hidden\n",
            ".git/info/exclude": "secret.txt\n",
            ".git/config": "[core]\n",
            "target/debug/out.rs": "fn x() {}\n",
            "nested/Cargo.toml": '[package]\nname = "nested"\nversion = "0.1.0"\n',
            "nested/src/lib.rs": "pub fn n() {}\n",
            "assets/logo.bin": b"\x89PNG\x00\x01\x02",
            "src/main.rs": "// entry\nfn main() {\n\n    /* block\n       comment */\n}\n",
            "src/target/mod.rs": "pub mod inner;\n",
        },
    )
    return root


def test_scan_follows_packaging_rules(tmp_path: Path) -> None:
    """Ensure pruned directories, nested crates and ignored files are skipped."""
    rows = _rows(_scanned_crate(tmp_path))
    assert list(rows) == [
        ".gitignore",
        "Cargo.toml",
        "assets/logo.bin",
        "src/lib.rs",
        "src/main.rs",
        "src/target/mod.rs",
    ]


def test_source_row_fields(tmp_path: Path) -> None:
    """Ensure sizes, hashes, languages and line counts are recorded."""
    rows = _rows(_scanned_crate(tmp_path))
    lib = rows["src/lib.rs"]
    assert lib.crate_name == "scan"
    assert lib.crate_version == "0.1.0"
    assert lib.language == "Rust"
    assert lib.size_bytes == len(DEFAULT_LIB.encode())
    assert lib.content_sha256 == hashlib.sha256(DEFAULT_LIB.encode()).hexdigest()
    assert (lib.line_count, lib.code_lines, lib.comment_lines, lib.blank_lines) == (3, 3, 0, 0)

    main = rows["src/main.rs"]
    assert (main.line_count, main.code_lines, main.comment_lines, main.blank_lines) == (6, 2, 3, 1)

    logo = rows["assets/logo.bin"]
    assert logo.is_binary is True
    assert logo.language is None
    assert logo.line_count == 0
    for row in rows.values():
        assert row_violations(ExtractionPhase.SOURCE_CODE, row) == ()


def test_include_is_an_allow_list(tmp_path: Path) -> None:
    """Ensure ``package.include`` replaces exclude and gitignore rules."""
    root = write_crate(
        tmp_path / "inc",
        "inc",
        package_extra='include = ["src/**", "*.log"]\nexclude = ["src/**"]',
        files={".gitignore": "*.log\n", "debug.log": "x\n", "README.md": "# inc\n"},
    )
    assert list(_rows(root)) == ["Cargo.toml", "debug.log", "src/lib.rs"]


def test_exclude_globs(tmp_path: Path) -> None:
    """Ensure ``package.exclude`` removes matching files but never the manifest."""
    root = write_crate(
        tmp_path / "exc",
        "exc",
        package_extra='exclude = ["*.md", "Cargo.toml", "benches/"]',
        files={"README.md": "# exc\n", "benches/b.rs": "fn b() {}\n"},
    )
    assert list(_rows(root)) == ["Cargo.toml", "src/lib.rs"]


def test_check_crate_path_reasons(tmp_path: Path) -> None:
    """Ensure filter decisions report which rule applied."""
    (tmp_path / ".gitignore").write_text("*.tmp\n", encoding="utf-8")
    filters = build_crate_pathspec(tmp_path, include_globs=(), exclude_globs=("docs/",))
    assert check_crate_path(Path("Cargo.toml"), filters=filters).reason == "manifest"
    assert check_crate_path(Path("docs/a.md"), filters=filters).reason == "exclude"
    assert check_crate_path(Path("a.tmp"), filters=filters).reason == "gitignore"
    decision = check_crate_path(Path("src/lib.rs"), filters=filters)
    assert decision.include is True
    assert decision.reason == "default"


def test_symlinks_skipped_by_default(tmp_path: Path) -> None:
    """Ensure symlinked files are only scanned when following symlinks."""
    root = write_crate(tmp_path / "link", "link")
    outside = tmp_path / "outside.rs"
    outside.write_text("fn o() {}\n", encoding="utf-8")
    (root / "src" / "linked.rs").symlink_to(outside)
    target = ExtractionTarget(project=load_project(root))
    default_paths = [row.path for row in SourceCodeExtractor().extract(target)]
    followed = [row.path for row in SourceCodeExtractor(follow_symlinks=True).extract(target)]
    assert "src/linked.rs" not in default_paths
    assert "src/linked.rs" in followed


def test_nested_gitignore_applies_below_its_directory(tmp_path: Path) -> None:
    """Ensure subdirectory ignore files filter only their own subtree."""
    root = write_crate(
        tmp_path / "nest",
        "nest",
        files={
            "src/gen/.gitignore": "*.rs\n!keep.rs\n",
            "src/gen/out.rs": "fn o() {}\n",
            "src/gen/keep.rs": "fn k() {}\n",
            "src/other.rs": "fn other() {}\n",
        },
    )
    assert list(_rows(root)) == [
        "Cargo.toml",
        "src/gen/.gitignore",
        "src/gen/keep.rs",
        "src/lib.rs",
        "src/other.rs",
    ]


def test_nested_gitignore_ignored_with_include_list(tmp_path: Path) -> None:
    """Ensure an include allow-list also overrides subdirectory ignore files."""
    root = write_crate(
        tmp_path / "nest_inc",
        "nest_inc",
        package_extra='include = ["src/**"]',
        files={"src/gen/.gitignore": "*.rs\n", "src/gen/out.rs": "fn o() {}\n"},
    )
    assert list(_rows(root)) == ["Cargo.toml", "src/gen/.gitignore", "src/gen/out.rs", "src/lib.rs"]


def test_skip_dirs_are_not_walked(tmp_path: Path) -> None:
    """Ensure a directory handed to the extractor as skipped yields no rows."""
    root = write_crate(
        tmp_path / "skip",
        "skip",
        files={"out/metadata.parquet": b"PAR1", "out/.metadata.parquet.partial": b"PAR1"},
    )
    target = ExtractionTarget(project=load_project(root), is_root=True)
    paths = [row.path for row in SourceCodeExtractor(skip_dirs=(root / "out",)).extract(target)]
    assert paths == ["Cargo.toml", "src/lib.rs"]
