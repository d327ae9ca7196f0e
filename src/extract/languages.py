"""Language detection and line classification for source files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

BINARY_SNIFF_BYTES = 8192


@dataclass(frozen=True)
class CommentSyntax:
    """Line and block comment markers of a language."""

    line: tuple[str, ...] = ()
    block: tuple[str, str] | None = None


@dataclass(frozen=True)
class LineCounts:
    """Total, code, comment and blank line counts of a text file."""

    total: int = 0
    code: int = 0
    comment: int = 0
    blank: int = 0


_C_STYLE = CommentSyntax(line=("//",), block=("/*", "*/"))
_HASH = CommentSyntax(line=("#",))
_NONE = CommentSyntax()

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".rs": "Rust",
    ".toml": "TOML",
    ".md": "Markdown",
    ".markdown": "Markdown",
    ".c": "C",
    ".h": "C",
    ".cc": "C++",
    ".cpp": "C++",
    ".cxx": "C++",
    ".hpp": "C++",
    ".s": "Assembly",
    ".asm": "Assembly",
    ".py": "Python",
    ".sh": "Shell",
    ".bash": "Shell",
    ".ps1": "PowerShell",
    ".js": "JavaScript",
    ".ts": "TypeScript",
    ".json": "JSON",
    ".yml": "YAML",
    ".yaml": "YAML",
    ".html": "HTML",
    ".css": "CSS",
    ".proto": "Protocol Buffers",
    ".go": "Go",
    ".wgsl": "WGSL",
    ".glsl": "GLSL",
    ".sql": "SQL",
    ".txt": "Text",
}

LANGUAGE_BY_FILENAME: dict[str, str] = {
    "Cargo.lock": "TOML",
    "Makefile": "Makefile",
    "Dockerfile": "Dockerfile",
    "LICENSE": "Text",
    "COPYING": "Text",
}

COMMENT_SYNTAX: dict[str, CommentSyntax] = {
    "Rust": _C_STYLE,
    "C": _C_STYLE,
    "C++": _C_STYLE,
    "Go": _C_STYLE,
    "JavaScript": _C_STYLE,
    "TypeScript": _C_STYLE,
    "Protocol Buffers": _C_STYLE,
    "WGSL": _C_STYLE,
    "GLSL": _C_STYLE,
    "CSS": CommentSyntax(block=("/*", "*/")),
    "TOML": _HASH,
    "Python": _HASH,
    "Shell": _HASH,
    "PowerShell": _HASH,
    "YAML": _HASH,
    "Makefile": _HASH,
    "Dockerfile": _HASH,
    "SQL": CommentSyntax(line=("--",), block=("/*", "*/")),
    "Assembly": CommentSyntax(line=(";", "//", "#")),
    "HTML": CommentSyntax(block=("<!--", "-->")),
}


def detect_language(path: PurePath) -> str | None:
    """Return the language name for a file path, or None when unknown."""
    by_name = LANGUAGE_BY_FILENAME.get(path.name)
    if by_name is not None:
        return by_name
    if path.name.startswith(("LICENSE-", "LICENCE-")):
        return "Text"
    return LANGUAGE_BY_EXTENSION.get(path.suffix.lower())


def is_binary(payload: bytes) -> bool:
    """Return True when the leading bytes contain a NUL byte."""
    return b"\x00" in payload[:BINARY_SNIFF_BYTES]


def count_lines(text: str, language: str | None) -> LineCounts:
    """Classify every line of ``text`` as code, comment or blank.

    A line that opens a block comment after code counts as code; lines fully
    inside a block comment count as comments. Nested block comments are not
    tracked.

    Returns
    -------
    LineCounts
        Per-category counts; ``total`` is the sum of the three categories.
    """
    syntax = COMMENT_SYNTAX.get(language or "", _NONE)
    code = comment = blank = 0
    in_block = False
    for raw in text.splitlines():
        line = raw.strip()
        if in_block:
            comment += 1
            if syntax.block is not None and syntax.block[1] in line:
                in_block = False
            continue
        if not line:
            blank += 1
            continue
        if syntax.line and line.startswith(syntax.line):
            comment += 1
            continue
        if syntax.block is not None:
            start, end = syntax.block
            if line.startswith(start):
                comment += 1
                in_block = end not in line[len(start) :]
                continue
            opened = line.find(start)
            if opened >= 0 and end not in line[opened + len(start) :]:
                in_block = True
        code += 1
    return LineCounts(total=code + comment + blank, code=code, comment=comment, blank=blank)


__all__ = [
    "BINARY_SNIFF_BYTES",
    "COMMENT_SYNTAX",
    "LANGUAGE_BY_EXTENSION",
    "CommentSyntax",
    "LineCounts",
    "count_lines",
    "detect_language",
    "is_binary",
]
