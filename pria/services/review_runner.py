"""Pull request review run: the sequential per-file review loop.

Files are reviewed in order with a single RunState, because the exclusion
list sent to the model for a file depends on the comments produced for the
files before it.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from pria.exceptions import ConfigurationError
from pria.models.options import ReviewOptions
from pria.models.review import Comment, Review, Thread
from pria.utils.comment_filters import filter_review
from pria.utils.dedupe import RunState
from pria.utils.file_filters import filter_files_for_review

logger = logging.getLogger(__name__)


class Reviewer(Protocol):
    async def perform_code_review(
        self, diff: str, file_name: str, existing_comments: list[str]
    ) -> Review: ...


class DiffSource(Protocol):
    def get_diff(self, file_name: str) -> str: ...

    def setup_current_branch(self) -> None: ...


class PullRequest(Protocol):
    async def get_last_reviewed_commit(self) -> str | None: ...

    async def get_last_merge_source_commit(self) -> str: ...

    async def save_last_reviewed_commit(self, commit_id: str) -> bool: ...

    async def get_commit_files(self, commit_id: str) -> list[str]: ...

    async def get_comments_for_file(self, file_name: str) -> list[Comment]: ...

    async def add_thread(self, thread: Thread) -> bool: ...


@dataclass
class RunSummary:
    """Outcome of a review run."""

    status: str  # "succeeded", "skipped"
    message: str = ""
    reviewed_files: list[str] = field(default_factory=list)
    posted_threads: int = 0
    filtered_out_comments: int = 0
    dedupe_criteria_met: bool = False


def check_trigger(build_reason: str | None, access_token: str | None) -> RunSummary | None:
    """Return a skipped summary unless the build was triggered by a pull request.

    Raises:
        ConfigurationError: If the pipeline does not expose its access token
    """
    if build_reason != "PullRequest":
        message = "This task must only be used when triggered by a Pull Request."
        logger.info(message)
        return RunSummary(status="skipped", message=message)

    if not access_token:
        raise ConfigurationError(
            "'Allow Scripts to Access OAuth Token' must be enabled. See "
            "https://learn.microsoft.com/en-us/azure/devops/pipelines/build/options"
            "?view=azure-devops#allow-scripts-to-access-the-oauth-token for more information"
        )
    return None


class ReviewRunner:
    """Review every selected file of the pull request and post the results."""

    def __init__(
        self,
        options: ReviewOptions,
        pull_request: PullRequest,
        repository: DiffSource,
        reviewer: Reviewer,
    ) -> None:
        self._options = options
        self._pull_request = pull_request
        self._repository = repository
        self._reviewer = reviewer

    async def run(self, build_reason: str | None, access_token: str | None) -> RunSummary:
        """Run the review for the current pull request build.

        Raises:
            ConfigurationError: If the pipeline does not expose its access token
        """
        skipped = check_trigger(build_reason, access_token)
        if skipped is not None:
            return skipped

        self._repository.setup_current_branch()

        last_reviewed_commit = await self._pull_request.get_last_reviewed_commit()
        last_merge_commit = await self._pull_request.get_last_merge_source_commit()

        if last_reviewed_commit == last_merge_commit and not self._options.allow_requeue:
            message = (
                f"Aborting. Last reviewed commit matches last merged commit: {last_reviewed_commit}."
            )
            logger.info(message)
            return RunSummary(status="skipped", message=message)

        commit_files = await self._pull_request.get_commit_files(last_merge_commit)
        logger.info(f"Last commit files: {commit_files}")

        files_to_review = filter_files_for_review(
            commit_files,
            file_extensions=self._options.file_extensions,
            file_extension_excludes=self._options.file_extension_excludes,
            files_to_include=self._options.files_to_include,
            files_to_exclude=self._options.files_to_exclude,
        )
        logger.info(f"Files to review: {files_to_review}")

        summary = RunSummary(status="succeeded", message="Pull Request reviewed.")
        state = RunState()
        for file_name in files_to_review:
            state = await self.review_file(file_name, state, summary)

        summary.dedupe_criteria_met = state.dedupe_criteria_met
        await self._pull_request.save_last_reviewed_commit(last_merge_commit)
        return summary

    async def review_file(
        self, file_name: str, state: RunState, summary: RunSummary
    ) -> RunState:
        """Review one file and return the run state for the next file."""
        diff = self._repository.get_diff(file_name)

        file_comments = await self._pull_request.get_comments_for_file(file_name)
        logger.info(f"Existing comments: {len(file_comments)}")

        excluded, state = state.exclusions_for(file_comments, self._options)

        review = await self._reviewer.perform_code_review(diff, file_name, excluded)
        # Low confidence comments still count as generated by the run
        generated_comments = review.comments
        summary.filtered_out_comments += len(filter_review(review, self._options))

        for thread in review.threads:
            if await self._pull_request.add_thread(thread):
                summary.posted_threads += 1

        summary.reviewed_files.append(file_name)
        logger.info(f"Completed review of file {file_name}")
        return state.record(generated_comments)
