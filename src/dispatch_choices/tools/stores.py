"""Shared contracts for places workflow documents are fetched from and committed to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Mapping, Protocol

__all__ = [
    "CommitStatus",
    "DEFAULT_WORKFLOWS_DIR",
    "DocumentNotFoundError",
    "DocumentStore",
    "FetchedDocument",
    "NotAFileError",
    "RevisionConflictError",
    "StoreError",
    "workflow_path",
]

DEFAULT_WORKFLOWS_DIR = ".github/workflows"


class StoreError(RuntimeError):
    """Raised when a document store cannot complete a request."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class DocumentNotFoundError(StoreError):
    """Raised when the requested document does not exist."""


class NotAFileError(StoreError):
    """Raised when the requested path resolves to something other than a file."""


class RevisionConflictError(StoreError):
    """Raised when a document changed between fetch and commit."""


class CommitStatus(str, Enum):
    """Result of committing a document revision."""

    OK = "ok"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class FetchedDocument:
    """Document text together with the revision token it was read at."""

    path: str
    text: str
    revision: str


class DocumentStore(Protocol):
    """Fetch documents and commit new revisions with optimistic concurrency."""

    def fetch(self, path: str) -> FetchedDocument:
        ...

    def commit(self, path: str, text: str, revision: str, message: str) -> CommitStatus:
        ...


def workflow_path(name: str, workflows_dir: str = DEFAULT_WORKFLOWS_DIR) -> str:
    """Return the repository-relative path of workflow file ``name``."""

    return (PurePosixPath(workflows_dir) / name).as_posix()
