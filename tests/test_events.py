"""Tests for event classification and push payload parsing."""

from datetime import datetime, timezone

import pytest

from tracker.events import (
    InvalidPayload,
    WebhookEvent,
    branch_name,
    classify_event,
    is_main_branch,
    parse_push_event,
    ping_response,
)


def _payload(**overrides):
    payload = {
        "ref": "refs/heads/main",
        "repository": {
            "id": 42,
            "name": "platform",
            "full_name": "acme/platform",
            "owner": {"login": "acme"},
        },
        "pusher": {"name": "octocat", "email": "octo@example.com"},
        "commits": [
            {
                "id": "a" * 40,
                "message": "Update payment [STATUS:done]",
                "timestamp": "2026-03-01T12:00:00Z",
                "author": {"name": "Octo", "email": "octo@example.com"},
                "added": [],
                "modified": ["services/payment/vibe.json"],
                "removed": [],
            }
        ],
    }
    payload.update(overrides)
    return payload


class TestClassifyEvent:
    def test_known_events(self):
        assert classify_event("push") == WebhookEvent.PUSH
        assert classify_event("ping") == WebhookEvent.PING

    def test_case_and_whitespace_insensitive(self):
        assert classify_event(" Push ") == WebhookEvent.PUSH

    def test_unknown_and_missing(self):
        assert classify_event("issues") == WebhookEvent.UNKNOWN
        assert classify_event("") == WebhookEvent.UNKNOWN
        assert classify_event(None) == WebhookEvent.UNKNOWN


class TestBranches:
    def test_branch_name_strips_prefix(self):
        assert branch_name("refs/heads/feature/x") == "feature/x"

    def test_main_branches(self):
        assert is_main_branch("refs/heads/main") is True
        assert is_main_branch("refs/heads/master") is True

    def test_non_main_branches(self):
        assert is_main_branch("refs/heads/feature/x") is False
        assert is_main_branch("refs/heads/maintenance") is False
        assert is_main_branch("refs/tags/main") is False


def test_ping_response_has_message_and_timestamp():
    body = ping_response()
    assert "ContextFlow" in body["message"]
    datetime.fromisoformat(body["timestamp"])


class TestParsePushEvent:
    def test_parses_full_payload(self):
        push = parse_push_event(_payload())
        assert push.ref == "refs/heads/main"
        assert push.branch == "main"
        assert push.repository.id == 42
        assert push.repository.owner == "acme"
        assert push.pusher.name == "octocat"

        commit = push.commits[0]
        assert commit.message == "Update payment [STATUS:done]"
        assert commit.timestamp == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert commit.modified == ("services/payment/vibe.json",)

    def test_offset_timestamps(self):
        payload = _payload()
        payload["commits"][0]["timestamp"] = "2026-03-01T14:00:00+02:00"
        commit = parse_push_event(payload).commits[0]
        assert commit.timestamp.astimezone(timezone.utc).hour == 12

    def test_owner_falls_back_to_name(self):
        payload = _payload()
        payload["repository"]["owner"] = {"name": "acme-org"}
        assert parse_push_event(payload).repository.owner == "acme-org"

    def test_empty_commit_list(self):
        assert parse_push_event(_payload(commits=[])).commits == ()

    def test_changed_paths_deduplicated_in_order(self):
        payload = _payload()
        payload["commits"][0].update(
            added=["a/vibe.json"], modified=["b/vibe.json", "a/vibe.json"], removed=["c.txt"]
        )
        commit = parse_push_event(payload).commits[0]
        assert commit.changed_paths() == ["a/vibe.json", "b/vibe.json", "c.txt"]

    @pytest.mark.parametrize("missing", ["ref", "repository", "commits"])
    def test_missing_required_field(self, missing):
        payload = _payload()
        del payload[missing]
        with pytest.raises(InvalidPayload):
            parse_push_event(payload)

    def test_rejects_non_object(self):
        with pytest.raises(InvalidPayload):
            parse_push_event(["not", "a", "push"])

    def test_rejects_commit_without_timestamp(self):
        payload = _payload()
        del payload["commits"][0]["timestamp"]
        with pytest.raises(InvalidPayload):
            parse_push_event(payload)

    def test_rejects_repository_without_id(self):
        payload = _payload()
        del payload["repository"]["id"]
        with pytest.raises(InvalidPayload):
            parse_push_event(payload)
