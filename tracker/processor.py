"""Run one verified push through extraction and suggestion synthesis."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.repository import Repository
from tracker.events import PushNotification, is_main_branch
from tracker.extractor import DEFAULT_MANIFEST_FILENAME, extract_manifest_changes
from tracker.notify import emit_notification
from tracker.synthesizer import synthesize_suggestions

logger = logging.getLogger(__name__)


@dataclass
class PushResult:
    success: bool
    message: str
    suggestions_created: int = 0
    errors: list[str] = field(default_factory=list)
    # Record-store failure: the delivery should be reported as failed so
    # GitHub redelivers it.
    retryable: bool = False

    def as_dict(self) -> dict:
        body = {
            "success": self.success,
            "message": self.message,
            "suggestions_created": self.suggestions_created,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


async def process_push(
    db: AsyncSession,
    repository: Repository,
    push: PushNotification,
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME,
) -> PushResult:
    repository_id = repository.id
    full_name = repository.full_name
    commit_count = len(push.commits)

    if not is_main_branch(push.ref):
        logger.info("Ignoring push to %s on %s", push.branch, full_name)
        return PushResult(success=True, message=f"Ignored push to non-main branch {push.branch}")

    events = extract_manifest_changes(push.commits, manifest_filename)
    if not events:
        return PushResult(success=True, message=f"Processed {commit_count} commit(s)")

    outcome = await synthesize_suggestions(db, repository_id, events)
    logger.info(
        "Push to %s: %d commit(s), %d manifest change(s), %d suggestion(s), %d duplicate(s)",
        full_name, commit_count, len(events), outcome.suggestions_created, outcome.duplicates,
    )

    if outcome.created:
        await emit_notification(
            "/suggestions",
            {
                "repository_id": repository_id,
                "repository": full_name,
                "suggestion_ids": outcome.created,
            },
        )

    return PushResult(
        success=not outcome.store_failed,
        message=f"Processed {commit_count} commit(s)",
        suggestions_created=outcome.suggestions_created,
        errors=outcome.errors,
        retryable=outcome.store_failed,
    )
