"""Workflow store that speaks the GitHub repository contents API."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import quote, urlencode

from .stores import CommitStatus, DocumentNotFoundError, FetchedDocument, NotAFileError, StoreError

__all__ = ["DEFAULT_API_URL", "GitHubWorkflowStore", "Transport"]

LOGGER = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

Transport = Callable[[str, str, Optional[Dict[str, Any]]], Tuple[int, str]]


def _error_message(body: str) -> str:
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return body.strip()[:200]
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return body.strip()[:200]


class GitHubWorkflowStore:
    """Fetch and commit workflow files through ``/repos/{owner}/{repo}/contents``.

    The blob ``sha`` returned by GitHub is the revision token; GitHub rejects
    a commit whose ``sha`` no longer matches the branch head with HTTP 409
    (or 422 on some API versions).
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: Optional[str] = None,
        branch: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        transport: Optional[Transport] = None,
        timeout: float = 30.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.branch = branch or None
        self._token = token or os.getenv("GITHUB_TOKEN")
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport or self._http_transport

        if transport is None and not self._token:
            raise ValueError("A GitHub token is required when using the default transport.")

    def _contents_url(self, path: str) -> str:
        return f"{self._api_url}/repos/{quote(self.owner)}/{quote(self.repo)}/contents/{quote(path)}"

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]]) -> Tuple[int, str]:
        try:
            return self._transport(method, url, payload)
        except StoreError:
            raise
        except Exception as error:  # pragma: no cover - defensive path
            raise StoreError(f"Transport rejected the request: {error}") from error

    def fetch(self, path: str) -> FetchedDocument:
        url = self._contents_url(path)
        if self.branch:
            url = f"{url}?{urlencode({'ref': self.branch})}"

        status, body = self._request("GET", url, None)
        if status == 404:
            raise DocumentNotFoundError(f"{path} not found", details={"path": path, "status": status})
        if status >= 400:
            raise StoreError(
                f"GitHub returned HTTP {status} for {path}: {_error_message(body)}",
                details={"path": path, "status": status},
            )

        try:
            data = json.loads(body)
        except json.JSONDecodeError as error:
            raise StoreError(f"GitHub returned malformed JSON for {path}") from error

        if not isinstance(data, dict) or data.get("type", "file") != "file" or not data.get("content"):
            raise NotAFileError(f"{path} is not a file", details={"path": path})

        try:
            text = base64.b64decode(data["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as error:
            raise StoreError(f"Unable to decode {path}: {error}") from error
        return FetchedDocument(path=path, text=text, revision=str(data.get("sha", "")))

    def commit(self, path: str, text: str, revision: str, message: str) -> CommitStatus:
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
            "sha": revision,
        }
        if self.branch:
            payload["branch"] = self.branch

        status, body = self._request("PUT", self._contents_url(path), payload)
        if status in (200, 201):
            return CommitStatus.OK
        if status == 404:
            return CommitStatus.NOT_FOUND
        if status in (409, 422):
            LOGGER.warning("GitHub rejected %s as stale: %s", path, _error_message(body))
            return CommitStatus.CONFLICT
        raise StoreError(
            f"GitHub returned HTTP {status} committing {path}: {_error_message(body)}",
            details={"path": path, "status": status},
        )

    def _http_transport(self, method: str, url: str, payload: Optional[Dict[str, Any]]) -> Tuple[int, str]:
        """Default HTTP transport built on ``urllib``."""
        import urllib.error
        import urllib.request

        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        request = urllib.request.Request(
            url,
            data=data,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
                "User-Agent": "dispatch-choices/0.1",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            method=method,
        )

        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                raw = response.read()
                status = getattr(response, "status", 200)
        except urllib.error.HTTPError as error:  # pragma: no cover - network-dependent
            return error.code, error.read().decode("utf-8", errors="ignore")
        except TimeoutError as error:  # pragma: no cover - network-dependent
            raise StoreError(f"GitHub request timed out: {method} {url}") from error
        except urllib.error.URLError as error:  # pragma: no cover - network-dependent
            raise StoreError(f"Failed to reach GitHub: {error.reason}") from error

        return status, raw.decode("utf-8")
