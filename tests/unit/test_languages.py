"""Tests for language detection and line classification."""

from __future__ import annotations

from pathlib import PurePath

import pytest

from extract.languages import LineCounts, count_lines, detect_language, is_binary


@pytest.mark.parametrize(
    ("path", "language"),
    [
        ("src/lib.rs", "Rust"),
        ("Cargo.toml", "TOML"),
        ("Cargo.lock", "TOML"),
        ("README.MD", "Markdown"),
        ("LICENSE-MIT", "Text"),
        ("build/helper.c", "C"),
        ("data.unknown", None),
        ("Makefile", "Makefile"),
    ],
)
def test_detect_language(path: str, language: str | None) -> None:
    """Ensure file names and extensions map to languages."""
    assert detect_language(PurePath(path)) == language


def test_is_binary() -> None:
    """Ensure NUL bytes in the sniffed prefix mark a file as binary."""
    assert is_binary(b"abc\x00def")
    assert not is_binary("plain text ✓".encode())
    assert not is_binary(b"")


def test_count_lines_rust() -> None:
    """Ensure line, block and trailing-block comments are classified."""
    text = "\n".join(
        [
            "//! crate docs",
            "",
            "/* start",
            "   middle",
            "end */",
            "fn main() { /* opens",
            "closes */",
            "    let x = 1; // trailing",
            "   ",
        ]
    )
    assert count_lines(text, "Rust") == LineCounts(total=9, code=2, comment=5, blank=2)


def test_count_lines_single_line_block() -> None:
    """Ensure a block comment closed on its own line does not leak."""
    assert count_lines("/* one */\nlet a = 1;\n", "Rust") == LineCounts(
        total=2, code=1, comment=1, blank=0
    )


def test_count_lines_hash_and_unknown() -> None:
    """Ensure hash comments apply to TOML and unknown languages count only code."""
    text = "# comment\nkey = 1\n\n"
    assert count_lines(text, "TOML") == LineCounts(total=3, code=1, comment=1, blank=1)
    assert count_lines(text, None) == LineCounts(total=3, code=2, comment=0, blank=1)
