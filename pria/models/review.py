"""Review output models exchanged with the AI model and Azure DevOps.

Field names follow Python conventions; the JSON form uses the camelCase
names of the Azure DevOps pull request threads API (``rightFileStart``,
``commentType``...). Both spellings are accepted on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    """Base model using camelCase aliases for serialization."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class FilePosition(_ApiModel):
    """A position within one side of a file diff.

    ``offset`` is a 1-based character index within the line's content.
    Only start positions normally carry a ``snippet``.
    """

    line: int
    offset: int = 1
    snippet: str | None = None


class ThreadContext(_ApiModel):
    """Anchor of a thread: a file and a left/right position range.

    Left is the before-change side, right the after-change side.
    """

    file_path: str
    left_file_start: FilePosition | None = None
    left_file_end: FilePosition | None = None
    right_file_start: FilePosition | None = None
    right_file_end: FilePosition | None = None


class Comment(_ApiModel):
    """A single review comment.

    ``confidence_score`` is optional; a comment without one is never
    removed by confidence filtering.
    """

    model_config = ConfigDict(extra="allow")

    content: str
    comment_type: int = 2
    confidence_score: float | None = None
    confidence_score_justification: str | None = None
    issue_type: str | None = None
    fix_suggestion: str | None = None
    sufficient_context: bool | None = None


class Thread(_ApiModel):
    """A comment container anchored to a file."""

    comments: list[Comment] = Field(default_factory=list)
    status: int = 1
    thread_context: ThreadContext | None = None

    def to_api_payload(self) -> dict[str, Any]:
        """Serialize the thread for the Azure DevOps threads endpoint."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Review(_ApiModel):
    """The review produced by the model for a single file."""

    threads: list[Thread] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "Review":
        """Return a review without threads."""
        return cls(threads=[])

    @property
    def comments(self) -> list[Comment]:
        """All comments of all threads, in thread order."""
        return [comment for thread in self.threads for comment in thread.comments]
