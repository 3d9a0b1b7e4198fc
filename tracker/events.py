"""Webhook event classification and push payload parsing."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

EVENT_HEADER = "X-GitHub-Event"
MAIN_BRANCHES = frozenset({"main", "master"})
_REF_PREFIX = "refs/heads/"


class WebhookEvent(str, enum.Enum):
    PUSH = "push"
    PING = "ping"
    UNKNOWN = "unknown"


class InvalidPayload(ValueError):
    """Raised when a push payload is missing required fields."""


@dataclass(frozen=True)
class Author:
    name: str
    email: str


@dataclass(frozen=True)
class Commit:
    id: str
    message: str
    timestamp: datetime
    author: Author
    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    def changed_paths(self) -> list[str]:
        """added + modified + removed, first occurrence wins."""
        return list(dict.fromkeys((*self.added, *self.modified, *self.removed)))


@dataclass(frozen=True)
class RepositoryRef:
    id: int
    name: str
    full_name: str
    owner: str


@dataclass(frozen=True)
class PushNotification:
    ref: str
    repository: RepositoryRef
    commits: tuple[Commit, ...] = field(default_factory=tuple)
    pusher: Author | None = None

    @property
    def branch(self) -> str:
        return branch_name(self.ref)


def classify_event(header: str | None) -> WebhookEvent:
    """Map the X-GitHub-Event header to a WebhookEvent; never raises."""
    if not header:
        return WebhookEvent.UNKNOWN
    try:
        return WebhookEvent(header.strip().lower())
    except ValueError:
        return WebhookEvent.UNKNOWN


def branch_name(ref: str) -> str:
    return ref.removeprefix(_REF_PREFIX)


def is_main_branch(ref: str) -> bool:
    return branch_name(ref) in MAIN_BRANCHES


def ping_response() -> dict:
    return {
        "message": "Webhook received! ContextFlow is ready to track your commits.",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _parse_timestamp(raw: Any) -> datetime:
    if not isinstance(raw, str) or not raw:
        raise InvalidPayload("commit timestamp missing")
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidPayload(f"bad commit timestamp: {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _paths(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise InvalidPayload("file list must be an array")
    return tuple(p for p in raw if isinstance(p, str))


def _parse_commit(raw: Any) -> Commit:
    if not isinstance(raw, dict):
        raise InvalidPayload("commit must be an object")
    try:
        author = raw.get("author") or {}
        return Commit(
            id=str(raw["id"]),
            message=str(raw.get("message") or ""),
            timestamp=_parse_timestamp(raw.get("timestamp")),
            author=Author(name=author.get("name", ""), email=author.get("email", "")),
            added=_paths(raw.get("added")),
            modified=_paths(raw.get("modified")),
            removed=_paths(raw.get("removed")),
        )
    except (KeyError, AttributeError, TypeError) as exc:
        raise InvalidPayload(f"malformed commit: {exc}") from exc


def parse_push_event(payload: Any) -> PushNotification:
    """Validate a decoded push payload and build a PushNotification.

    Raises InvalidPayload when required fields are missing; callers reject
    the whole delivery in that case.
    """
    if not isinstance(payload, dict):
        raise InvalidPayload("payload must be an object")

    repo = payload.get("repository")
    commits = payload.get("commits")
    ref = payload.get("ref")
    if not isinstance(repo, dict) or not isinstance(commits, list) or not isinstance(ref, str):
        raise InvalidPayload("push payload requires ref, repository and commits")

    try:
        owner = repo.get("owner") or {}
        repository = RepositoryRef(
            id=int(repo["id"]),
            name=str(repo["name"]),
            full_name=str(repo["full_name"]),
            owner=str(owner.get("login") or owner.get("name") or ""),
        )
    except (KeyError, AttributeError, TypeError, ValueError) as exc:
        raise InvalidPayload(f"malformed repository: {exc}") from exc

    pusher_raw = payload.get("pusher")
    pusher = None
    if isinstance(pusher_raw, dict):
        pusher = Author(name=pusher_raw.get("name", ""), email=pusher_raw.get("email", ""))

    return PushNotification(
        ref=ref,
        repository=repository,
        commits=tuple(_parse_commit(c) for c in commits),
        pusher=pusher,
    )
