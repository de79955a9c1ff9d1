"""Run configuration consumed by the review pipeline."""

from pydantic import BaseModel, Field


class ReviewOptions(BaseModel):
    """Options that stay fixed for the duration of one review run.

    Built from the task inputs by ``Settings.review_options()``.
    """

    # Confidence filtering
    confidence_mode: bool = False
    confidence_minimum: float = Field(
        default=9, description="Inclusive lower bound on the model's 1-10 scale"
    )

    # Cross-file deduplication
    dedupe_across_files: bool = False
    dedupe_across_files_threshold: int = Field(
        default=10,
        description="Qualifying run comments that must be exceeded to start deduplicating",
    )

    # Prompt toggles
    bugs: bool = False
    performance: bool = False
    best_practices: bool = False
    modified_lines_only: bool = False
    additional_prompts: list[str] = Field(default_factory=list)

    enable_comment_line_correction: bool = False
    allow_requeue: bool = False

    # File selection (comma separated lists)
    file_extensions: str | None = None
    file_extension_excludes: str | None = None
    files_to_include: str | None = None
    files_to_exclude: str | None = None
