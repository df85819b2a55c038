"""Workflow store backed by the working tree of a local git repository."""

from __future__ import annotations

import logging
from pathlib import Path

from .stores import CommitStatus, DocumentNotFoundError, FetchedDocument, NotAFileError
from .vcs import GitError, GitRepository

__all__ = ["GitWorkflowStore"]

LOGGER = logging.getLogger(__name__)


class GitWorkflowStore:
    """Read workflows from disk and commit each change as its own git commit.

    Revision tokens are git blob ids of the working tree file, so a commit is
    refused when the file changed after it was fetched.
    """

    def __init__(self, repo: GitRepository, *, branch: str | None = None) -> None:
        self.repo = repo
        if branch:
            current = repo.current_branch()
            if current != branch:
                raise GitError(
                    f"Branch '{branch}' is not checked out in {repo.root} (current: {current or 'detached HEAD'})"
                )
        self.branch = branch

    def _resolve(self, path: str) -> Path:
        return self.repo.root / path

    def fetch(self, path: str) -> FetchedDocument:
        target = self._resolve(path)
        if not target.exists():
            raise DocumentNotFoundError(f"{path} does not exist", details={"path": path})
        if not target.is_file():
            raise NotAFileError(f"{path} is not a file", details={"path": path})
        # newline="" keeps CRLF documents byte-exact.
        with target.open("r", encoding="utf-8", newline="") as handle:
            text = handle.read()
        return FetchedDocument(path=path, text=text, revision=self.repo.hash_object(path))

    def commit(self, path: str, text: str, revision: str, message: str) -> CommitStatus:
        target = self._resolve(path)
        if not target.is_file():
            return CommitStatus.NOT_FOUND
        if self.repo.hash_object(path) != revision:
            LOGGER.warning("Refusing to commit %s: file changed since it was read", path)
            return CommitStatus.CONFLICT

        with target.open("w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        sha = self.repo.commit_paths(message, path)
        LOGGER.debug("Committed %s as %s", path, sha or "(no-op)")
        return CommitStatus.OK
