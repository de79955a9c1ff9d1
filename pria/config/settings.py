"""Application settings using Pydantic Settings for environment variable management.

Azure Pipelines exposes task inputs as ``INPUT_<NAME>`` and pipeline variables
with dots replaced by underscores (``System.AccessToken`` becomes
``SYSTEM_ACCESSTOKEN``). In dev mode the same values are read from plain
environment variables, so both spellings are accepted.
"""

import logging
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pria.models.options import ReviewOptions

logger = logging.getLogger(__name__)


def _task_input(name: str) -> AliasChoices:
    """Accept a task input from the pipeline or from a plain variable."""
    return AliasChoices(f"INPUT_{name.upper()}", name.upper())


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
    )

    # AI model inputs
    api_key: str | None = Field(
        default=None,
        validation_alias=_task_input("api_key"),
        description="OpenAI or Azure OpenAI API key",
    )
    api_endpoint: str | None = Field(
        default=None,
        validation_alias=_task_input("api_endpoint"),
        description="Azure OpenAI endpoint; plain OpenAI is used when unset",
    )
    api_version: str | None = Field(
        default=None,
        validation_alias=_task_input("api_version"),
        description="Azure OpenAI API version",
    )
    ai_model: str = Field(
        default="gpt-4o",
        validation_alias=_task_input("ai_model"),
        description="Model name or Azure deployment",
    )
    max_tokens: int = Field(
        default=128000, description="Token budget for a single review request"
    )
    max_retries: int = Field(
        default=2, description="Maximum number of retries for model calls"
    )

    # File selection inputs
    # Deprecated: use file_includes instead
    file_extensions: str | None = Field(
        default=None, validation_alias=_task_input("file_extensions")
    )
    # Deprecated: use file_excludes instead
    file_extension_excludes: str | None = Field(
        default=None, validation_alias=_task_input("file_extension_excludes")
    )
    file_includes: str | None = Field(
        default=None, validation_alias=_task_input("file_includes")
    )
    file_excludes: str | None = Field(
        default=None, validation_alias=_task_input("file_excludes")
    )

    # Review behaviour inputs
    additional_prompts: str | None = Field(
        default=None,
        validation_alias=_task_input("additional_prompts"),
        description="Comma separated extra instructions for the model",
    )
    bugs: bool = Field(default=False, validation_alias=_task_input("bugs"))
    performance: bool = Field(
        default=False, validation_alias=_task_input("performance")
    )
    best_practices: bool = Field(
        default=False, validation_alias=_task_input("best_practices")
    )
    modified_lines_only: bool = Field(
        default=False, validation_alias=_task_input("modified_lines_only")
    )
    comment_line_correction: bool = Field(
        default=False, validation_alias=_task_input("comment_line_correction")
    )
    allow_requeue: bool = Field(
        default=False, validation_alias=_task_input("allow_requeue")
    )
    confidence_mode: bool = Field(
        default=False, validation_alias=_task_input("confidence_mode")
    )
    confidence_minimum: float = Field(
        default=9, validation_alias=_task_input("confidence_minimum")
    )
    dedupe_across_files: bool = Field(
        default=False, validation_alias=_task_input("dedupe_across_files")
    )
    dedupe_across_files_threshold: int = Field(
        default=10, validation_alias=_task_input("dedupe_across_files_threshold")
    )
    verbose_logging: bool = Field(
        default=False, validation_alias=_task_input("verbose_logging")
    )

    # Pipeline variables
    build_reason: str | None = Field(
        default=None, validation_alias="BUILD_REASON"
    )
    access_token: str | None = Field(
        default=None, validation_alias="SYSTEM_ACCESSTOKEN"
    )
    collection_uri: str | None = Field(
        default=None, validation_alias="SYSTEM_TEAMFOUNDATIONCOLLECTIONURI"
    )
    team_project: str | None = Field(
        default=None, validation_alias="SYSTEM_TEAMPROJECT"
    )
    team_project_id: str | None = Field(
        default=None, validation_alias="SYSTEM_TEAMPROJECTID"
    )
    repository_name: str | None = Field(
        default=None, validation_alias="BUILD_REPOSITORY_NAME"
    )
    pull_request_id: str | None = Field(
        default=None, validation_alias="SYSTEM_PULLREQUEST_PULLREQUESTID"
    )
    target_branch_name: str | None = Field(
        default=None, validation_alias="SYSTEM_PULLREQUEST_TARGETBRANCHNAME"
    )
    target_branch: str | None = Field(
        default=None, validation_alias="SYSTEM_PULLREQUEST_TARGETBRANCH"
    )
    target_branch_include_origin_prefix: bool = Field(
        default=True, validation_alias="TARGETBRANCH_INCLUDEORIGINPREFIX"
    )
    working_directory: str = Field(
        default=".", validation_alias="SYSTEM_DEFAULTWORKINGDIRECTORY"
    )
    system_debug: bool = Field(default=False, validation_alias="SYSTEM_DEBUG")

    # Local development
    dev_mode: bool = Field(default=False, description="Run outside of a pipeline")
    auto_setup_pr_branch: bool = Field(
        default=False, description="Check out the PR merge branch in dev mode"
    )

    # Observability
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @property
    def is_pull_request_build(self) -> bool:
        """Check if the pipeline was triggered by a pull request."""
        return self.build_reason == "PullRequest"

    @property
    def debug_enabled(self) -> bool:
        """Check if debug output was requested by the pipeline or the task."""
        return self.system_debug or self.verbose_logging

    def review_options(self) -> ReviewOptions:
        """Build the options consumed by the review pipeline."""
        additional_prompts = [
            prompt.strip()
            for prompt in (self.additional_prompts or "").split(",")
            if prompt.strip()
        ]
        return ReviewOptions(
            confidence_mode=self.confidence_mode,
            confidence_minimum=self.confidence_minimum,
            dedupe_across_files=self.dedupe_across_files,
            dedupe_across_files_threshold=self.dedupe_across_files_threshold,
            bugs=self.bugs,
            performance=self.performance,
            best_practices=self.best_practices,
            modified_lines_only=self.modified_lines_only,
            additional_prompts=additional_prompts,
            enable_comment_line_correction=self.comment_line_correction,
            allow_requeue=self.allow_requeue,
            file_extensions=self.file_extensions,
            file_extension_excludes=self.file_extension_excludes,
            files_to_include=self.file_includes,
            files_to_exclude=self.file_excludes,
        )

    def log_inputs(self) -> None:
        """Log the effective settings with secrets masked."""
        for key, value in self.model_dump().items():
            if key in _SECRET_FIELDS and value:
                value = "***"
            logger.info(f"{key}: {value}")


_SECRET_FIELDS = {"api_key", "access_token", "logfire_token"}


# Global settings instance
settings = Settings()
