"""
GitHub repository accessor — calls the GitHub REST API directly.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional
from urllib.parse import quote

import requests

from ..errors import (
    NotFoundError, RemoteUnavailableError, RepositoryError, RevisionConflictError,
)
from .base import DIR, FILE, FileRecord, RepositoryAccessor, TreeNode, build_tree

logger = logging.getLogger(__name__)


class GitHubAccessor(RepositoryAccessor):

    API_VERSION = "2022-11-28"
    SEARCH_PAGE_SIZE = 20

    def __init__(self, token: str, owner: str, repo: str,
                 api_url: str = "https://api.github.com",
                 timeout: float = 15.0,
                 session: requests.Session | None = None):
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": self.API_VERSION,
        })

    @property
    def _repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}"

    # ── Transport ──

    def _request(self, method: str, url: str, path: str = "", **kwargs) -> dict | list:
        """Issue one request and map failures onto the error taxonomy."""
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise RemoteUnavailableError(f"GitHub request timed out: {url}") from exc
        except requests.RequestException as exc:
            raise RemoteUnavailableError(f"GitHub request failed: {exc}") from exc

        status = response.status_code
        if status == 404:
            raise NotFoundError(path or url)
        if status == 409:
            raise RevisionConflictError(path or url)
        if status >= 500:
            raise RemoteUnavailableError(f"GitHub returned {status} for {url}")
        if status >= 400:
            try:
                detail = response.json().get("message", "")
            except ValueError:
                detail = response.text[:200]
            raise RepositoryError(f"GitHub returned {status} for {path or url}: {detail}")

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RepositoryError(f"GitHub sent a non-JSON body for {path or url}") from exc

    # ── Tree ──

    def get_branch_sha(self, branch: str) -> str:
        data = self._request("GET", f"{self._repo_url}/branches/{quote(branch, safe='')}",
                             path=branch)
        try:
            return data["commit"]["sha"]
        except (KeyError, TypeError) as exc:
            raise RepositoryError(f"Unexpected branch payload for {branch}") from exc

    def get_tree(self, branch: str) -> list[TreeNode]:
        sha = self.get_branch_sha(branch)
        data = self._request("GET", f"{self._repo_url}/git/trees/{sha}",
                             params={"recursive": "1"})
        try:
            if data.get("truncated"):
                logger.warning("[GitHub] Tree for %s is truncated by the API", branch)
            entries = [
                (item["path"], DIR if item.get("type") == "tree" else FILE)
                for item in data.get("tree", [])
                if item.get("type") in ("tree", "blob")
            ]
        except (AttributeError, KeyError, TypeError) as exc:
            raise RepositoryError(f"Unexpected tree payload for {branch}") from exc
        return build_tree(entries)

    # ── Files ──

    def get_file(self, path: str, branch: str) -> FileRecord:
        data = self._request("GET", f"{self._repo_url}/contents/{quote(path)}",
                             path=path, params={"ref": branch})
        if isinstance(data, list) or data.get("type") != "file":
            raise NotFoundError(path, f"Path {path} is not a file")

        try:
            raw = base64.b64decode(data.get("content", ""))
        except (binascii.Error, TypeError) as exc:
            raise RepositoryError(f"Could not decode contents of {path}") from exc
        try:
            # Writes re-encode as UTF-8, so anything else would not round-trip
            content = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RepositoryError(
                f"{path} is not UTF-8 text; it cannot be read or edited safely") from exc
        logger.debug("[GitHub] Read %s@%s (%d bytes)", path, branch, len(raw))
        return FileRecord(path=path, content=content, revision=data.get("sha", ""))

    def write_file(self, path: str, content: str, message: str, branch: str,
                   expected_revision: Optional[str] = None) -> None:
        payload = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if expected_revision:
            payload["sha"] = expected_revision
        self._request("PUT", f"{self._repo_url}/contents/{quote(path)}",
                      path=path, json=payload)
        logger.info("[GitHub] Wrote %s on %s", path, branch)

    # ── Search ──

    def search(self, term: str) -> list[str]:
        data = self._request(
            "GET", f"{self.api_url}/search/code",
            params={"q": f"{term} repo:{self.owner}/{self.repo}",
                    "per_page": self.SEARCH_PAGE_SIZE},
        )
        try:
            return [item["path"] for item in data.get("items", [])]
        except (AttributeError, KeyError, TypeError) as exc:
            raise RepositoryError(f"Unexpected search payload for {term!r}") from exc
