"""
sources package for guardian

Workflow sources supply the files of a repository's workflows directory,
either from a local checkout or from the GitHub API.
"""

from .base import (
    WORKFLOW_EXTENSIONS,
    WORKFLOWS_PATH,
    RetrievalError,
    WorkflowFile,
    WorkflowSource,
)
from .local import LocalWorkflowSource
from .github import GitHubAPIError, GitHubClient, GitHubWorkflowSource

__all__ = [
    "WORKFLOW_EXTENSIONS",
    "WORKFLOWS_PATH",
    "RetrievalError",
    "WorkflowFile",
    "WorkflowSource",
    "LocalWorkflowSource",
    "GitHubAPIError",
    "GitHubClient",
    "GitHubWorkflowSource",
]
