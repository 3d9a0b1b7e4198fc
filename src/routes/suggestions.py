"""Pending manifest suggestions for a connected repository."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth import get_current_user_id
from src.database import get_db
from src.models.commit_suggestion import CommitSuggestion
from src.models.microservice import Microservice
from src.models.repository import Repository
from src.schemas.suggestions import SuggestionResponse

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.get("", response_model=list[SuggestionResponse])
async def list_pending_suggestions(
    repository_id: str = Query(...),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Unapplied suggestions for every microservice in the repository, newest first."""
    repository = await db.get(Repository, repository_id)
    if repository is None:
        raise HTTPException(status_code=404, detail=f"Repository {repository_id} not found")
    if repository.user_id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    result = await db.execute(
        select(CommitSuggestion)
        .join(Microservice, CommitSuggestion.microservice_id == Microservice.id)
        .options(selectinload(CommitSuggestion.microservice))
        .where(
            Microservice.repository_id == repository_id,
            CommitSuggestion.is_applied.is_(False),
        )
        .order_by(CommitSuggestion.created_at.desc())
    )
    return result.scalars().all()
