"""Plan usage and quota checks for the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user_id
from src.database import get_db
from src.schemas.usage import (
    UsageCheckRequest, UsageCheckResponse, UsageInfoResponse, UsageResponse,
)
from src.usage_limits import (
    UsageInfo, UsageType, can_user_add, get_user_usage, limit_exceeded_message,
)

router = APIRouter(prefix="/usage", tags=["usage"])


def _usage_info(info: UsageInfo) -> UsageInfoResponse:
    return UsageInfoResponse(
        plan=info.plan.value,
        limit=info.limit,
        used=info.used,
        remaining=info.remaining,
        can_add=info.can_add,
        is_unlimited=info.is_unlimited,
    )


@router.get("", response_model=UsageResponse)
async def get_usage(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Current usage against every plan ceiling."""
    snapshot = await get_user_usage(db, user_id)
    usage = snapshot["usage"]
    return UsageResponse(
        plan=snapshot["plan"].value,
        subscription_status=snapshot["subscription_status"],
        repositories=_usage_info(usage[UsageType.REPOSITORIES]),
        microservices=_usage_info(usage[UsageType.MICROSERVICES]),
        team_members=_usage_info(usage[UsageType.TEAM_MEMBERS]),
    )


@router.post("/check", response_model=UsageCheckResponse)
async def check_usage(
    body: UsageCheckRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Whether the user may create one more resource of the given type."""
    decision = await can_user_add(db, user_id, body.type)
    return UsageCheckResponse(
        allowed=decision.allowed,
        usage=_usage_info(decision.usage),
        upgrade_required=decision.upgrade_required,
        message=None if decision.allowed else limit_exceeded_message(body.type, decision.usage.plan),
    )
