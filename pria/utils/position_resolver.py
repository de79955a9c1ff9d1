"""Re-anchor review comments to their true position in a file diff.

The model reports a line number and a code snippet for every comment. The
line number is often off by a few lines, so the snippet is located in the
diff instead and the reported line only breaks ties between several
matching lines.

Example:
    A comment reported at right line 2540 with the snippet
    ``if (x != y) {`` is moved to the added line 2543 whose content contains
    that snippet, with offsets pointing at the snippet within the line.
"""

import logging

from pria.models.diff import ChangeKind, DiffChange, parse_diff
from pria.models.review import FilePosition, Review, ThreadContext

logger = logging.getLogger(__name__)


def fix(review: Review, diff_text: str) -> None:
    """Fix the line numbers and offsets of every thread in ``review``.

    Positions are updated in place. Threads whose snippet cannot be found
    keep the coordinates reported by the model.

    Args:
        review: Review produced for a single file
        diff_text: Unified diff of that file
    """
    if not review.threads:
        logger.info("No threads found in the review. No line numbers to fix.")
        return

    logger.info(
        f"Fixing comment line numbers for review with {len(review.threads)} threads"
    )
    changes = parse_diff(diff_text).first_file_changes()
    if not changes:
        logger.warning("No changes found in the diff, comment positions are kept")

    for thread in review.threads:
        context = thread.thread_context
        if context is None:
            continue

        logger.debug(f"Thread before: {thread.model_dump_json(by_alias=True)}")
        _fix_side(context, changes, right_side=True)
        _fix_side(context, changes, right_side=False)
        logger.debug(f"Thread after: {thread.model_dump_json(by_alias=True)}")


def fixed(review: Review, diff_text: str) -> Review:
    """Return a copy of ``review`` with fixed positions.

    The given review is left untouched.
    """
    review_copy = review.model_copy(deep=True)
    fix(review_copy, diff_text)
    return review_copy


def split_snippet(snippet: str) -> list[str]:
    """Split a snippet into lines, treating CRLF and CR like LF."""
    return snippet.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def _fix_side(
    context: ThreadContext, changes: list[DiffChange], right_side: bool
) -> None:
    """Fix the start/end pair of one side of a thread context."""
    if right_side:
        file_start, file_end = context.right_file_start, context.right_file_end
    else:
        file_start, file_end = context.left_file_start, context.left_file_end

    # Only snippet-bearing positions can be re-anchored
    if file_start is None or not file_start.snippet:
        return

    snippets = split_snippet(file_start.snippet)
    first_snippet = snippets[0]

    match = find_line_and_offset(changes, first_snippet, file_start.line, right_side)
    if match is None:
        logger.warning(
            f"No line found for snippet {first_snippet!r} near line {file_start.line} "
            f"({'right' if right_side else 'left'} side), keeping reported position"
        )
        return

    line_number, offset = match
    if file_end is None:
        if right_side:
            context.right_file_end = FilePosition(line=line_number)
            file_end = context.right_file_end
        else:
            context.left_file_end = FilePosition(line=line_number)
            file_end = context.left_file_end

    file_start.line = line_number
    file_start.offset = offset
    file_end.line = line_number
    file_end.offset = offset + len(first_snippet)

    if len(snippets) > 1:
        _fix_multiline_end(file_end, snippets[-1], changes, right_side)


def _fix_multiline_end(
    file_end: FilePosition,
    last_snippet: str,
    changes: list[DiffChange],
    right_side: bool,
) -> None:
    """Move ``file_end`` to the last line of a multiline snippet."""
    match = find_line_and_offset(changes, last_snippet, file_end.line, right_side)
    if match is None:
        logger.warning(
            f"No line found for last line of snippet {last_snippet!r}, "
            f"ending the comment on line {file_end.line}"
        )
        return

    line_number, offset = match
    file_end.line = line_number
    file_end.offset = offset + len(last_snippet)


def find_line_and_offset(
    changes: list[DiffChange],
    search_text: str,
    original_line: int,
    right_side: bool = True,
) -> tuple[int, int] | None:
    """Locate ``search_text`` in the diff.

    Args:
        changes: Line changes of the file
        search_text: Literal text to look for (case and whitespace sensitive)
        original_line: Line number reported by the model
        right_side: Search added lines (True) or deleted lines (False);
            unchanged lines are searched on both sides

    Returns:
        (line_number, 1-based offset) of the closest match, or None
    """
    change = find_closest_change(changes, search_text, original_line, right_side)
    if change is None:
        return None

    line_number = change.line_number(right_side)
    if line_number is None:
        return None
    return line_number, change.content.index(search_text) + 1


def find_closest_change(
    changes: list[DiffChange],
    search_text: str,
    original_line: int,
    right_side: bool = True,
) -> DiffChange | None:
    """Return the matching change closest to ``original_line``.

    On equal distance the change that comes first in the diff wins.
    """
    side_kind = ChangeKind.ADDED if right_side else ChangeKind.DELETED
    candidates = [
        change
        for change in changes
        if search_text in change.content
        and change.kind in (ChangeKind.UNCHANGED, side_kind)
    ]

    closest: DiffChange | None = None
    closest_distance = 0
    for candidate in candidates:
        distance = abs(candidate.line_number(right_side) - original_line)  # type: ignore[operator]
        if closest is None or distance < closest_distance:
            closest = candidate
            closest_distance = distance

    if closest is None:
        logger.debug(
            f"No candidates for {search_text!r} among {len(changes)} changes "
            f"(original line {original_line}, right side: {right_side})"
        )
    return closest
