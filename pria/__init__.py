"""PR Inspection Assistant: AI pull request reviews for Azure DevOps."""

__version__ = "0.1.0"
