"""Local git repository access for pull request diffs."""

import logging

from git import Repo

from pria.config.settings import Settings
from pria.exceptions import TargetBranchNotFoundError

logger = logging.getLogger(__name__)


class Repository:
    """Diffs of the checked out pull request against its target branch.

    Args:
        settings: Pipeline settings (working directory and target branch)
        repo: Optional repository, opened from the working directory by default
    """

    def __init__(self, settings: Settings, repo: Repo | None = None) -> None:
        self._settings = settings
        self.repo = repo if repo is not None else Repo(settings.working_directory)

    def get_target_branch(self) -> str:
        """Return the branch the pull request merges into.

        Raises:
            TargetBranchNotFoundError: If no target branch variable is set
        """
        target_branch = self._settings.target_branch_name
        if not target_branch and self._settings.target_branch:
            target_branch = self._settings.target_branch.replace("refs/heads/", "")

        if not target_branch:
            raise TargetBranchNotFoundError("Could not find target branch")

        if self._settings.target_branch_include_origin_prefix:
            return f"origin/{target_branch}"
        return target_branch

    def get_diff(self, file_name: str) -> str:
        """Return the unified diff of one file against the target branch."""
        target_branch = self.get_target_branch()
        return self.repo.git(c="core.quotepath=false").diff(target_branch, "--", file_name)

    def get_changed_files(self) -> list[str]:
        """List files added or modified against the target branch."""
        self.repo.git.fetch()
        target_branch = self.get_target_branch()
        logger.info(f"Target branch: {target_branch}")

        output = self.repo.git.diff(target_branch, "--name-only", "--diff-filter=AM")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def setup_current_branch(self) -> None:
        """Check out the pull request merge branch.

        Only needed in dev mode: the pipeline checks out the merge commit
        itself.
        """
        if not (self._settings.dev_mode and self._settings.auto_setup_pr_branch):
            return

        branch = f"pull/{self._settings.pull_request_id}/merge"
        logger.info(f"Updating PR branch: {branch}")
        self.repo.git.fetch("origin", "+refs/pull/*/merge:refs/remotes/pull/*/merge")
        self.repo.git.checkout(branch)
        logger.info(f"Checked out {branch} at {self.repo.head.commit.hexsha}")
