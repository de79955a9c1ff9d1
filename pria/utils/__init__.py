"""Utility functions and helpers."""

from .comment_filters import FilterResult, filter_by_confidence, filter_by_options
from .dedupe import RunState, select_exclusion_set
from .file_filters import filter_files_for_review
from .retry import with_exponential_backoff

__all__ = [
    "FilterResult",
    "filter_by_confidence",
    "filter_by_options",
    "RunState",
    "select_exclusion_set",
    "filter_files_for_review",
    "with_exponential_backoff",
]
