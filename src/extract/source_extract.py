"""Per-file source code rows."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence
from pathlib import Path

from extract.crate_scan import list_crate_files
from extract.languages import count_lines, detect_language, is_binary
from extract.pathspec_filters import build_crate_pathspec
from extract.targets import ExtractionTarget
from schema_spec.phases import ExtractionPhase
from schema_spec.rows import SourceFileRow

logger = logging.getLogger(__name__)


class SourceCodeExtractor:
    """Emit one :class:`SourceFileRow` per packaged file, sorted by path.

    The file set follows Cargo packaging: ``package.include`` when present,
    otherwise everything minus ``package.exclude`` and ``.gitignore``;
    ``target/``, ``.git/``, nested packages and ``skip_dirs`` (the run's output
    directory when it lies inside a crate) are never walked.
    """

    phase = ExtractionPhase.SOURCE_CODE

    def __init__(
        self, *, follow_symlinks: bool = False, skip_dirs: Sequence[Path] = ()
    ) -> None:
        self.follow_symlinks = follow_symlinks
        self.skip_dirs = tuple(skip_dirs)

    def extract(self, target: ExtractionTarget) -> list[SourceFileRow]:
        project = target.project
        filters = build_crate_pathspec(
            project.root,
            include_globs=project.include,
            exclude_globs=project.exclude,
        )
        files = list_crate_files(
            project.root,
            filters=filters,
            follow_symlinks=self.follow_symlinks,
            skip_dirs=self.skip_dirs,
        )
        rows = [self._row(target, project.root, rel) for rel in files]
        logger.debug("Scanned %d files in %s", len(rows), target.label)
        return rows

    @staticmethod
    def _row(target: ExtractionTarget, root: Path, rel: Path) -> SourceFileRow:
        payload = (root / rel).read_bytes()
        language = detect_language(rel)
        binary = is_binary(payload)
        counts = None if binary else count_lines(payload.decode("utf-8", errors="replace"), language)
        return SourceFileRow(
            crate_name=target.project.name,
            crate_version=target.project.version,
            path=rel.as_posix(),
            size_bytes=len(payload),
            language=language,
            line_count=counts.total if counts else 0,
            code_lines=counts.code if counts else 0,
            comment_lines=counts.comment if counts else 0,
            blank_lines=counts.blank if counts else 0,
            is_binary=binary,
            content_sha256=hashlib.sha256(payload).hexdigest(),
        )


__all__ = ["SourceCodeExtractor"]
