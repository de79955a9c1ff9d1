"""Structured view of a unified diff.

The diff text is parsed with ``unidiff`` and flattened into small immutable
records so that callers never depend on the parser's own classes.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from unidiff import PatchSet
from unidiff.constants import LINE_TYPE_ADDED, LINE_TYPE_CONTEXT, LINE_TYPE_REMOVED
from unidiff.errors import UnidiffParseError

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Kind of a single line change."""

    ADDED = "added"
    DELETED = "deleted"
    UNCHANGED = "unchanged"


_KIND_BY_LINE_TYPE = {
    LINE_TYPE_ADDED: ChangeKind.ADDED,
    LINE_TYPE_REMOVED: ChangeKind.DELETED,
    LINE_TYPE_CONTEXT: ChangeKind.UNCHANGED,
}


@dataclass(frozen=True)
class DiffChange:
    """One line of a hunk.

    ADDED and UNCHANGED lines carry ``line_after``; DELETED and UNCHANGED
    lines carry ``line_before``.
    """

    kind: ChangeKind
    content: str
    line_before: int | None = None
    line_after: int | None = None

    def line_number(self, right_side: bool) -> int | None:
        """Return the line number on the requested side of the diff."""
        return self.line_after if right_side else self.line_before


@dataclass(frozen=True)
class DiffHunk:
    """A contiguous block of changes."""

    source_start: int
    source_length: int
    target_start: int
    target_length: int
    changes: tuple[DiffChange, ...] = ()


@dataclass(frozen=True)
class DiffFile:
    """All hunks of one file."""

    source_path: str
    target_path: str
    hunks: tuple[DiffHunk, ...] = ()

    @property
    def changes(self) -> list[DiffChange]:
        """Changes of every hunk, in diff order."""
        return [change for hunk in self.hunks for change in hunk.changes]


@dataclass(frozen=True)
class ParsedDiff:
    """Ordered files of a diff."""

    files: tuple[DiffFile, ...] = field(default_factory=tuple)

    def first_file_changes(self) -> list[DiffChange]:
        """Return the changes of the first file, or an empty list."""
        if not self.files:
            return []
        return self.files[0].changes


def parse_diff(diff_text: str) -> ParsedDiff:
    """Parse unified/git diff text.

    Malformed input is logged and produces an empty diff instead of raising,
    so that callers degrade to "no matching lines".

    Args:
        diff_text: Raw output of ``git diff`` for one or more files

    Returns:
        ParsedDiff with one entry per file in the diff
    """
    if not diff_text or not diff_text.strip():
        return ParsedDiff()

    try:
        patch_set = PatchSet.from_string(diff_text)
    except UnidiffParseError as e:
        logger.warning(f"Unable to parse diff, treating it as empty: {e}")
        return ParsedDiff()

    files = []
    for patched_file in patch_set:
        hunks = []
        for hunk in patched_file:
            changes = tuple(
                DiffChange(
                    kind=_KIND_BY_LINE_TYPE[line.line_type],
                    content=line.value.rstrip("\r\n"),
                    line_before=line.source_line_no,
                    line_after=line.target_line_no,
                )
                for line in hunk
                if line.line_type in _KIND_BY_LINE_TYPE
            )
            hunks.append(
                DiffHunk(
                    source_start=hunk.source_start,
                    source_length=hunk.source_length,
                    target_start=hunk.target_start,
                    target_length=hunk.target_length,
                    changes=changes,
                )
            )
        files.append(
            DiffFile(
                source_path=patched_file.source_file,
                target_path=patched_file.target_file,
                hunks=tuple(hunks),
            )
        )

    logger.debug(f"Parsed diff with {len(files)} file(s)")
    return ParsedDiff(files=tuple(files))
