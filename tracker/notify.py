"""Fire-and-forget notification emission when suggestions are created.

Failures are logged but never raised; a notification must not undo or
block suggestions that were already stored.
"""

from __future__ import annotations

import logging

import httpx

from src.config import settings

logger = logging.getLogger(__name__)

_TIMEOUT = 5.0


async def emit_notification(path: str, payload: dict) -> bool:
    """POST payload to the configured notification endpoint at path.

    Returns True when delivered; silent on failure.
    """
    base = settings.notification_webhook_url
    if not base:
        logger.debug("notification_webhook_url not configured, skipping notification")
        return False

    url = f"{base.rstrip('/')}{path}"
    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            resp = await client.post(url, json=payload)
            resp.raise_for_status()
            logger.info("Notification delivered to %s", url)
            return True
    except Exception as exc:
        logger.warning("Notification to %s failed (non-fatal): %s", url, exc)
        return False
