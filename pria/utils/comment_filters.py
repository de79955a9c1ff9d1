"""Confidence based filtering of review comments."""

import logging
from typing import NamedTuple

from pria.models.options import ReviewOptions
from pria.models.review import Comment, Review

logger = logging.getLogger(__name__)


class FilterResult(NamedTuple):
    """Partition of a comment list. Both groups keep the input order."""

    filtered_out: list[Comment]
    remaining: list[Comment]


def filter_by_confidence(comments: list[Comment], minimum: float) -> FilterResult:
    """Split comments on a minimum confidence score.

    A comment is filtered out only when it has a score below ``minimum``.
    Comments without a score always remain.

    Args:
        comments: Comments to partition
        minimum: Inclusive lower bound for the confidence score

    Returns:
        FilterResult with filtered_out and remaining comments
    """
    filtered_out: list[Comment] = []
    remaining: list[Comment] = []

    for comment in comments:
        if comment.confidence_score is not None and comment.confidence_score < minimum:
            filtered_out.append(comment)
        else:
            remaining.append(comment)

    return FilterResult(filtered_out=filtered_out, remaining=remaining)


def filter_by_options(comments: list[Comment], options: ReviewOptions) -> FilterResult:
    """Filter comments by confidence only when confidence mode is enabled."""
    if options.confidence_mode:
        return filter_by_confidence(comments, options.confidence_minimum)
    return FilterResult(filtered_out=[], remaining=comments)


def filter_review(review: Review, options: ReviewOptions) -> list[Comment]:
    """Apply confidence filtering to every thread of a review in place.

    Threads left without comments are dropped from the review.

    Returns:
        The comments that were filtered out
    """
    filtered_out: list[Comment] = []
    kept_threads = []

    for thread in review.threads:
        result = filter_by_options(thread.comments, options)
        filtered_out.extend(result.filtered_out)
        if result.remaining:
            thread.comments = result.remaining
            kept_threads.append(thread)

    review.threads = kept_threads

    if filtered_out:
        logger.info(
            f"Filtered out {len(filtered_out)} comment(s) below confidence "
            f"{options.confidence_minimum}"
        )
    return filtered_out
