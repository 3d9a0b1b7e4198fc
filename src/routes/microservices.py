"""Microservice read endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user_id
from src.database import get_db
from src.models.microservice import Microservice
from src.models.repository import Repository
from src.schemas.suggestions import MicroserviceHealthResponse
from tracker.health import classify_health, days_since

router = APIRouter(prefix="/microservices", tags=["microservices"])


@router.get("/{microservice_id}/health", response_model=MicroserviceHealthResponse)
async def get_microservice_health(
    microservice_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Health recomputed from the stored last commit date; no GitHub call."""
    ms = await db.get(Microservice, microservice_id)
    if ms is None:
        raise HTTPException(status_code=404, detail=f"Microservice {microservice_id} not found")
    repository = await db.get(Repository, ms.repository_id)
    if repository is None or repository.user_id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    now = datetime.now(timezone.utc)
    return MicroserviceHealthResponse(
        microservice_id=ms.id,
        service_name=ms.service_name,
        health_status=classify_health(now, ms.last_commit_date).value,
        stored_health_status=ms.health_status,
        last_commit_date=ms.last_commit_date,
        days_since_commit=days_since(now, ms.last_commit_date) if ms.last_commit_date else None,
    )
