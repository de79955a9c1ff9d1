"""Code review agent using Pydantic AI and OpenAI or Azure OpenAI."""

import json
import logging
from collections.abc import Callable

import tiktoken
from pydantic_ai import Agent
from pydantic_ai.exceptions import UnexpectedModelBehavior
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.azure import AzureProvider
from pydantic_ai.providers.openai import OpenAIProvider

from pria.config.settings import Settings
from pria.models.options import ReviewOptions
from pria.models.review import Review
from pria.prompts.code_reviewer_prompt import build_system_prompt
from pria.utils import position_resolver
from pria.utils.retry import with_exponential_backoff

logger = logging.getLogger(__name__)


def create_code_review_agent(settings: Settings, options: ReviewOptions) -> Agent[None, Review]:
    """Create the review agent for the configured model provider.

    Azure OpenAI is used when an endpoint is configured, OpenAI otherwise.
    """
    if settings.api_endpoint:
        provider: AzureProvider | OpenAIProvider = AzureProvider(
            azure_endpoint=settings.api_endpoint,
            api_version=settings.api_version,
            api_key=settings.api_key,
        )
    else:
        provider = OpenAIProvider(api_key=settings.api_key)

    model = OpenAIChatModel(settings.ai_model, provider=provider)
    logger.info(f"Model: {settings.ai_model}")

    return Agent(
        model=model,
        output_type=Review,
        system_prompt=build_system_prompt(options),
        retries=settings.max_retries,
    )


def count_tokens(text: str, model_name: str = "gpt-4o") -> int:
    """Count tokens with the model's encoding, or o200k_base for unknown models."""
    try:
        encoding = tiktoken.encoding_for_model(model_name)
    except KeyError:
        encoding = tiktoken.get_encoding("o200k_base")
    return len(encoding.encode(text))


class CodeReviewer:
    """Runs the review agent for one file at a time.

    Args:
        agent: Agent producing a Review
        options: Run options (prompt toggles and comment line correction)
        max_tokens: Token budget of a single request
        max_retries: Attempts for transient model errors
        token_counter: Function counting the tokens of a prompt
    """

    def __init__(
        self,
        agent: Agent[None, Review],
        options: ReviewOptions,
        max_tokens: int = 128000,
        max_retries: int = 3,
        token_counter: Callable[[str], int] | None = None,
    ) -> None:
        self._agent = agent
        self._options = options
        self._max_tokens = max_tokens
        self._max_retries = max_retries
        self._token_counter = token_counter or count_tokens
        self._system_prompt = build_system_prompt(options)

    async def perform_code_review(
        self, diff: str, file_name: str, existing_comments: list[str]
    ) -> Review:
        """Review the diff of one file.

        Args:
            diff: Unified diff of the file
            file_name: Path of the file in the repository
            existing_comments: Comment contents the model must not repeat

        Returns:
            The review, with positions fixed when comment line correction
            is enabled. Empty when the diff is too large or the model output
            is unusable.
        """
        review = await self._send_request(diff, file_name, existing_comments)

        if self._options.enable_comment_line_correction:
            position_resolver.fix(review, diff)
        return review

    async def _send_request(
        self, diff: str, file_name: str, existing_comments: list[str]
    ) -> Review:
        if not file_name.startswith("/"):
            file_name = f"/{file_name}"

        prompt = json.dumps(
            {
                "fileName": file_name,
                "diff": diff,
                "existingComments": existing_comments,
            },
            indent=4,
        )
        logger.debug(f"Diff:\n{diff}")

        if self._exceeds_token_limit(self._system_prompt + prompt):
            logger.warning(
                f"Unable to process diff for file {file_name} as it exceeds token limits."
            )
            return Review.empty()

        try:
            result = await with_exponential_backoff(
                self._agent.run, prompt, max_retries=self._max_retries
            )
        except UnexpectedModelBehavior as e:
            logger.warning(f"Model returned an unusable review for {file_name}: {e}")
            return Review.empty()

        review = result.output
        logger.info(f"Model returned {len(review.threads)} thread(s) for {file_name}")
        logger.debug(f"Comments:\n{review.model_dump_json(by_alias=True, indent=2)}")
        return review

    def _exceeds_token_limit(self, message: str) -> bool:
        tokens = self._token_counter(message)
        logger.info(f"Token count: {tokens}")
        return tokens > self._max_tokens
