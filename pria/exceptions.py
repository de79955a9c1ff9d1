"""Exceptions raised by the review pipeline."""


class PriaError(Exception):
    """Base class for errors that should stop a review run."""


class ConfigurationError(PriaError):
    """A required pipeline variable or task input is missing."""


class TargetBranchNotFoundError(PriaError):
    """The pull request target branch could not be determined."""


class AzureDevOpsError(PriaError):
    """An Azure DevOps request failed in a way the run cannot recover from."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
