"""Tests for fire-and-forget notifications."""

import httpx
import pytest

from src.config import settings
from tracker import notify


@pytest.fixture
def mock_transport(monkeypatch):
    requests = []
    status = {"code": 200}

    def handler(request):
        requests.append(request)
        return httpx.Response(status["code"], json={"ok": True})

    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        notify.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    return requests, status


class TestEmitNotification:
    @pytest.mark.asyncio
    async def test_skipped_when_unconfigured(self, monkeypatch, mock_transport):
        monkeypatch.setattr(settings, "notification_webhook_url", "")
        requests, _ = mock_transport
        assert await notify.emit_notification("/suggestions", {"a": 1}) is False
        assert requests == []

    @pytest.mark.asyncio
    async def test_posts_payload(self, monkeypatch, mock_transport):
        monkeypatch.setattr(settings, "notification_webhook_url", "https://hooks.test/")
        requests, _ = mock_transport
        assert await notify.emit_notification("/suggestions", {"suggestion_ids": ["s1"]}) is True
        assert str(requests[0].url) == "https://hooks.test/suggestions"

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, monkeypatch, mock_transport):
        monkeypatch.setattr(settings, "notification_webhook_url", "https://hooks.test")
        _, status = mock_transport
        status["code"] = 500
        assert await notify.emit_notification("/suggestions", {}) is False
