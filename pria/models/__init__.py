"""Data models for PR Inspection Assistant."""

from .diff import ChangeKind, DiffChange, DiffFile, DiffHunk, ParsedDiff, parse_diff
from .options import ReviewOptions
from .review import Comment, FilePosition, Review, Thread, ThreadContext

__all__ = [
    "ChangeKind",
    "DiffChange",
    "DiffFile",
    "DiffHunk",
    "ParsedDiff",
    "parse_diff",
    "ReviewOptions",
    "Comment",
    "FilePosition",
    "Review",
    "Thread",
    "ThreadContext",
]
