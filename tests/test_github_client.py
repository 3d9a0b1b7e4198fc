"""Tests for the GitHub REST client against a mock transport."""

import base64
import json
from datetime import datetime, timezone

import httpx
import pytest

from tracker.github_client import GitHubClient


def _client(handler):
    return GitHubClient(
        "gh-token", base_url="https://github.test", transport=httpx.MockTransport(handler)
    )


class TestGitHubClient:
    def test_requires_token(self):
        with pytest.raises(ValueError):
            GitHubClient("")

    @pytest.mark.asyncio
    async def test_sends_auth_headers(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={"id": 42, "full_name": "acme/platform"})

        async with _client(handler) as client:
            repo = await client.get_repository("acme", "platform")

        assert repo["id"] == 42
        assert seen["authorization"] == "Bearer gh-token"
        assert seen["accept"] == "application/vnd.github+json"

    @pytest.mark.asyncio
    async def test_find_manifests_filters_blobs_by_basename(self):
        def handler(request):
            assert request.url.path == "/repos/acme/platform/git/trees/HEAD"
            assert request.url.params["recursive"] == "1"
            return httpx.Response(200, json={"tree": [
                {"path": "services/b/vibe.json", "type": "blob"},
                {"path": "vibe.json", "type": "tree"},
                {"path": "services/a/vibe.json", "type": "blob"},
                {"path": "services/a/vibe.json.bak", "type": "blob"},
                {"path": "README.md", "type": "blob"},
            ]})

        async with _client(handler) as client:
            paths = await client.find_manifests("acme", "platform", "vibe.json")

        assert paths == ["services/a/vibe.json", "services/b/vibe.json"]

    @pytest.mark.asyncio
    async def test_get_file_content_decodes_base64(self):
        raw = json.dumps({"serviceName": "payment"})

        def handler(request):
            return httpx.Response(200, json={
                "path": "services/payment/vibe.json",
                "sha": "abc",
                "content": base64.b64encode(raw.encode()).decode(),
            })

        async with _client(handler) as client:
            file = await client.get_file_content("acme", "platform", "services/payment/vibe.json")

        assert file.sha == "abc"
        assert json.loads(file.content) == {"serviceName": "payment"}

    @pytest.mark.asyncio
    async def test_get_file_content_missing(self):
        async with _client(lambda request: httpx.Response(404, json={})) as client:
            assert await client.get_file_content("acme", "platform", "nope/vibe.json") is None

    @pytest.mark.asyncio
    async def test_get_file_content_directory(self):
        async with _client(lambda request: httpx.Response(200, json=[])) as client:
            assert await client.get_file_content("acme", "platform", "services") is None

    @pytest.mark.asyncio
    async def test_latest_commit_date(self):
        def handler(request):
            assert request.url.path == "/repos/acme/platform/commits"
            assert request.url.params["path"] == "services/a/vibe.json"
            assert request.url.params["per_page"] == "1"
            return httpx.Response(200, json=[
                {"commit": {"author": {"date": "2026-03-01T12:00:00Z"}}}
            ])

        async with _client(handler) as client:
            date = await client.latest_commit_date("acme", "platform", "services/a/vibe.json")

        assert date == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_latest_commit_date_without_history(self):
        async with _client(lambda request: httpx.Response(200, json=[])) as client:
            assert await client.latest_commit_date("acme", "platform", "a/vibe.json") is None

    @pytest.mark.asyncio
    async def test_latest_commit_date_empty_repository(self):
        async with _client(lambda request: httpx.Response(409, json={})) as client:
            assert await client.latest_commit_date("acme", "platform", "a/vibe.json") is None

    @pytest.mark.asyncio
    async def test_revoked_token_raises(self):
        async with _client(lambda request: httpx.Response(401, json={})) as client:
            with pytest.raises(httpx.HTTPStatusError, match="Authentication failed"):
                await client.get_repository("acme", "platform")

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        async with _client(lambda request: httpx.Response(500, json={})) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.latest_commit_date("acme", "platform", "a/vibe.json")

    @pytest.mark.asyncio
    async def test_create_webhook_payload(self):
        sent = {}

        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/repos/acme/platform/hooks"
            sent.update(json.loads(request.content))
            return httpx.Response(201, json={"id": 555})

        async with _client(handler) as client:
            hook = await client.create_webhook(
                "acme", "platform", "https://ctx.test/api/v1/webhook/r1", "shh"
            )

        assert hook["id"] == 555
        assert sent["events"] == ["push"]
        assert sent["config"]["url"] == "https://ctx.test/api/v1/webhook/r1"
        assert sent["config"]["secret"] == "shh"
        assert sent["config"]["content_type"] == "json"

    @pytest.mark.asyncio
    async def test_delete_webhook(self):
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path))
            return httpx.Response(204)

        async with _client(handler) as client:
            await client.delete_webhook("acme", "platform", 555)

        assert calls == [("DELETE", "/repos/acme/platform/hooks/555")]
