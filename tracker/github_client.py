"""GitHub REST client for repository trees, file contents, commits and webhooks.

Calls are best-effort: failures surface to the caller as exceptions and are
never retried here.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from posixpath import basename
from typing import Any

import httpx

from src.config import settings

logger = logging.getLogger(__name__)

_TIMEOUT = 15.0


@dataclass
class FileContent:
    path: str
    sha: str
    content: str


class GitHubClient:
    """Thin async wrapper over the GitHub REST API for one user's token."""

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise ValueError("GitHub access token is required.")
        self.base_url = (base_url or settings.github_api_base).rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._client = httpx.AsyncClient(timeout=_TIMEOUT, transport=transport)

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        resp = await self._client.request(method, url, headers=self.headers, **kwargs)
        if resp.status_code in (401, 403):
            raise httpx.HTTPStatusError(
                f"Authentication failed ({resp.status_code}) for {method} {url}. "
                f"The user's GitHub token may have been revoked.",
                request=resp.request,
                response=resp,
            )
        resp.raise_for_status()
        return resp

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        resp = await self._request("GET", f"/repos/{owner}/{repo}")
        return resp.json()

    async def get_repository_tree(
        self,
        owner: str,
        repo: str,
        tree_sha: str = "HEAD",
        recursive: bool = True,
    ) -> list[dict[str, Any]]:
        params = {"recursive": "1"} if recursive else None
        resp = await self._request(
            "GET", f"/repos/{owner}/{repo}/git/trees/{tree_sha}", params=params
        )
        payload = resp.json()
        if payload.get("truncated"):
            logger.warning("Tree for %s/%s was truncated by GitHub", owner, repo)
        return payload.get("tree", [])

    async def find_manifests(self, owner: str, repo: str, filename: str) -> list[str]:
        """Paths of every blob in the default branch whose basename is filename."""
        tree = await self.get_repository_tree(owner, repo)
        return sorted(
            entry["path"]
            for entry in tree
            if entry.get("type") == "blob" and basename(entry.get("path", "")) == filename
        )

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> FileContent | None:
        """Return decoded file content, or None if the path is missing or a directory."""
        params = {"ref": ref} if ref else None
        try:
            resp = await self._request(
                "GET", f"/repos/{owner}/{repo}/contents/{path}", params=params
            )
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise

        data = resp.json()
        if isinstance(data, list) or "content" not in data:
            return None
        content = base64.b64decode(data["content"]).decode("utf-8")
        return FileContent(path=data.get("path", path), sha=data.get("sha", ""), content=content)

    async def get_latest_commit_for_path(
        self, owner: str, repo: str, path: str
    ) -> dict[str, Any] | None:
        try:
            resp = await self._request(
                "GET",
                f"/repos/{owner}/{repo}/commits",
                params={"path": path, "per_page": 1},
            )
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in (404, 409):  # 409: empty repository
                return None
            raise
        commits = resp.json()
        return commits[0] if commits else None

    async def latest_commit_date(self, owner: str, repo: str, path: str) -> datetime | None:
        commit = await self.get_latest_commit_for_path(owner, repo, path)
        if not commit:
            return None
        raw = ((commit.get("commit") or {}).get("author") or {}).get("date")
        if not raw:
            return None
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    async def create_webhook(
        self, owner: str, repo: str, webhook_url: str, secret: str
    ) -> dict[str, Any]:
        payload = {
            "name": "web",
            "config": {
                "url": webhook_url,
                "content_type": "json",
                "secret": secret,
                "insecure_ssl": "0",
            },
            "events": ["push"],
            "active": True,
        }
        resp = await self._request("POST", f"/repos/{owner}/{repo}/hooks", json=payload)
        data = resp.json()
        logger.info("Webhook %s registered on %s/%s", data.get("id"), owner, repo)
        return data

    async def delete_webhook(self, owner: str, repo: str, hook_id: int) -> None:
        await self._request("DELETE", f"/repos/{owner}/{repo}/hooks/{hook_id}")
