"""GitHub webhook endpoints: verify, classify, and turn pushes into suggestions."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.database import get_db
from src.models.repository import Repository
from tracker.events import (
    EVENT_HEADER,
    InvalidPayload,
    WebhookEvent,
    classify_event,
    parse_push_event,
    ping_response,
)
from tracker.processor import process_push
from tracker.signature import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])

_NOT_TRACKED = {"success": True, "message": "Repository not tracked"}


async def _handle_delivery(
    request: Request,
    db: AsyncSession,
    secret: str,
    repository: Repository | None = None,
):
    # Signature covers the exact bytes GitHub sent, so read them before any parsing.
    raw_body = await request.body()
    if not verify_signature(raw_body, request.headers.get(SIGNATURE_HEADER), secret):
        logger.warning(
            "Rejected webhook delivery %s: invalid signature",
            request.headers.get("X-GitHub-Delivery", "?"),
        )
        raise HTTPException(status_code=401, detail="Invalid signature")

    event = classify_event(request.headers.get(EVENT_HEADER))
    if event == WebhookEvent.PING:
        return ping_response()
    if event != WebhookEvent.PUSH:
        raise HTTPException(status_code=400, detail="Only push events are supported")

    try:
        push = parse_push_event(json.loads(raw_body))
    except (InvalidPayload, ValueError) as exc:
        logger.warning("Rejected malformed push payload: %s", exc)
        raise HTTPException(status_code=400, detail="Invalid push event payload")

    if repository is None:
        result = await db.execute(
            select(Repository).where(Repository.github_repo_id == push.repository.id)
        )
        repository = result.scalar_one_or_none()
    elif repository.github_repo_id != push.repository.id:
        logger.warning(
            "Push for %s delivered to the webhook of %s", push.repository.full_name,
            repository.full_name,
        )
        return _NOT_TRACKED

    if repository is None or not repository.is_active:
        logger.info("Repository not tracked: %s", push.repository.full_name)
        return _NOT_TRACKED

    outcome = await process_push(db, repository, push, settings.manifest_filename)
    if outcome.retryable:
        # Non-2xx makes GitHub redeliver; suggestions already stored dedupe on retry.
        return JSONResponse(status_code=503, content=outcome.as_dict())
    return outcome.as_dict()


@router.post("")
async def receive_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Shared endpoint, verified with CONTEXTFLOW_GITHUB_WEBHOOK_SECRET."""
    if not settings.github_webhook_secret:
        logger.error("CONTEXTFLOW_GITHUB_WEBHOOK_SECRET not configured")
    return await _handle_delivery(request, db, settings.github_webhook_secret)


@router.post("/{repository_id}")
async def receive_repository_webhook(
    repository_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Per-repository endpoint, verified with the repository's own secret."""
    repository = await db.get(Repository, repository_id)
    secret = repository.webhook_secret if repository and repository.webhook_secret else ""
    return await _handle_delivery(request, db, secret, repository)
