"""Cross-file deduplication of review comments within one run.

Files are reviewed one after another. Comments already posted on a file are
always sent to the model as exclusions. Once the run has produced more
qualifying comments than the configured threshold, every comment of the run
is excluded as well, for the current file and all later ones.
"""

import logging
from dataclasses import dataclass, replace

from pria.models.options import ReviewOptions
from pria.models.review import Comment
from pria.utils.comment_filters import filter_by_options

logger = logging.getLogger(__name__)


def select_exclusion_set(
    file_comments: list[Comment],
    run_comments: list[Comment],
    options: ReviewOptions,
    dedupe_met: bool,
) -> tuple[list[str], bool]:
    """Determine which comment contents the model must not repeat.

    Args:
        file_comments: Comments already present on the file
        run_comments: Comments generated so far in this run, for any file
        options: Run options controlling deduplication and filtering
        dedupe_met: Whether the deduplication criteria were met earlier

    Returns:
        (contents to exclude, updated deduplication state)
    """
    comments_for_exclusion = list(file_comments)

    if options.dedupe_across_files:
        if not dedupe_met:
            run_comment_count = len(filter_by_options(run_comments, options).remaining)
            logger.info(f"Current run comment count: {run_comment_count}")

            if run_comment_count > options.dedupe_across_files_threshold:
                dedupe_met = True
                logger.info("Deduplicate comments across files criteria met.")
            else:
                logger.info(
                    "Deduplicate comments across files criteria has NOT been met."
                )

        if dedupe_met:
            comments_for_exclusion.extend(run_comments)

    return [comment.content for comment in comments_for_exclusion], dedupe_met


@dataclass(frozen=True)
class RunState:
    """Comments accumulated during one review run.

    Instances are immutable; every operation returns the next state.
    ``dedupe_criteria_met`` never goes back to False within a run.
    """

    accumulated_comments: tuple[Comment, ...] = ()
    dedupe_criteria_met: bool = False

    def exclusions_for(
        self, file_comments: list[Comment], options: ReviewOptions
    ) -> tuple[list[str], "RunState"]:
        """Return the exclusion list for the next file and the updated state."""
        excluded, dedupe_met = select_exclusion_set(
            file_comments,
            list(self.accumulated_comments),
            options,
            self.dedupe_criteria_met,
        )
        return excluded, replace(
            self, dedupe_criteria_met=self.dedupe_criteria_met or dedupe_met
        )

    def record(self, comments: list[Comment]) -> "RunState":
        """Return a state that also holds ``comments``."""
        if not comments:
            return self
        return replace(
            self, accumulated_comments=self.accumulated_comments + tuple(comments)
        )
