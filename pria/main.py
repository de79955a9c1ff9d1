"""Pipeline task entry point."""

import argparse
import asyncio
import logging
import sys
from functools import partial

import httpx

from pria.agents.code_reviewer import CodeReviewer, count_tokens, create_code_review_agent
from pria.config.settings import Settings, settings as default_settings
from pria.exceptions import ConfigurationError, PriaError
from pria.services.azure_devops import AzureDevOpsClient, PullRequestClient
from pria.services.repository import Repository
from pria.services.review_runner import ReviewRunner, RunSummary, check_trigger
from pria.utils.logging import setup_observability

logger = logging.getLogger(__name__)


async def run_review(settings: Settings, delete_bot_comments: bool = False) -> RunSummary:
    """Build the collaborators from settings and review the pull request."""
    options = settings.review_options()
    settings.log_inputs()

    skipped = check_trigger(settings.build_reason, settings.access_token)
    if skipped is not None:
        return skipped

    if not settings.api_key:
        raise ConfigurationError("The api_key input is required")

    async with httpx.AsyncClient(timeout=30.0) as http_client:
        client = AzureDevOpsClient(settings.access_token or "", http_client)
        pull_request = PullRequestClient(settings, client)

        if delete_bot_comments:
            deleted = await pull_request.delete_bot_comments()
            logger.info(f"Deleted {deleted} comment(s) posted by {pull_request.build_service_name}")

        reviewer = CodeReviewer(
            create_code_review_agent(settings, options),
            options,
            max_tokens=settings.max_tokens,
            max_retries=settings.max_retries + 1,
            token_counter=partial(count_tokens, model_name=settings.ai_model),
        )
        runner = ReviewRunner(
            options,
            pull_request=pull_request,
            repository=Repository(settings),
            reviewer=reviewer,
        )
        return await runner.run(settings.build_reason, settings.access_token)


def main(argv: list[str] | None = None) -> int:
    """Run the review task. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        description="Review an Azure DevOps pull request with an AI model"
    )
    parser.add_argument(
        "--delete-bot-comments",
        action="store_true",
        help="Delete comments previously posted by the build service before reviewing",
    )
    args = parser.parse_args(argv)

    setup_observability(default_settings)

    try:
        summary = asyncio.run(run_review(default_settings, args.delete_bot_comments))
    except PriaError as e:
        logger.error(str(e))
        return 1

    logger.info(
        f"{summary.message} Files reviewed: {len(summary.reviewed_files)}, "
        f"threads posted: {summary.posted_threads}, "
        f"comments filtered out: {summary.filtered_out_comments}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
