"""Document stores and git integration used around the mutation engine."""

from .git_store import GitWorkflowStore
from .github_store import GitHubWorkflowStore
from .stores import (
    CommitStatus,
    DocumentNotFoundError,
    DocumentStore,
    FetchedDocument,
    NotAFileError,
    RevisionConflictError,
    StoreError,
    workflow_path,
)
from .vcs import GitError, GitRepository

__all__ = [
    "CommitStatus",
    "DocumentNotFoundError",
    "DocumentStore",
    "FetchedDocument",
    "GitError",
    "GitHubWorkflowStore",
    "GitRepository",
    "GitWorkflowStore",
    "NotAFileError",
    "RevisionConflictError",
    "StoreError",
    "workflow_path",
]
