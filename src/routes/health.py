"""Scheduled health sweep trigger (called by cron every few hours)."""

from __future__ import annotations

import secrets

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.database import get_db
from tracker.health import run_health_sweep

router = APIRouter(prefix="/health", tags=["health"])


@router.post("/sweep")
async def health_sweep(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Refresh every microservice's health from its latest manifest commit."""
    if settings.cron_secret:
        expected = f"Bearer {settings.cron_secret}"
        if not authorization or not secrets.compare_digest(authorization, expected):
            raise HTTPException(status_code=401, detail="Unauthorized")

    summary = await run_health_sweep(db)
    body = {
        "success": True,
        "message": "Health check completed",
        "summary": summary.as_dict(),
    }
    if summary.errors:
        body["errors"] = summary.errors
    return body
