"""Services for Azure DevOps, git and the review run."""

from pria.services.azure_devops import AzureDevOpsClient, PullRequestClient
from pria.services.repository import Repository
from pria.services.review_runner import ReviewRunner, RunSummary

__all__ = [
    "AzureDevOpsClient",
    "PullRequestClient",
    "Repository",
    "ReviewRunner",
    "RunSummary",
]
