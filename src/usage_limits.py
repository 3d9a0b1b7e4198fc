"""Plan-based quota gate for resource-creating operations.

``check_limit`` and ``decide`` are pure; the async helpers read live counts
and the user's effective plan from the database.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.microservice import Microservice
from src.models.repository import Repository
from src.models.team_member import TeamMember
from src.models.user import User

PLANS_PATH = Path(__file__).resolve().parent / "plans.yaml"
UNLIMITED = -1
_ACTIVE_SUBSCRIPTION_STATUSES = {"active", "trialing"}


class Plan(str, enum.Enum):
    FREE = "free"
    PRO = "pro"
    TEAM = "team"


class UsageType(str, enum.Enum):
    REPOSITORIES = "repositories"
    MICROSERVICES = "microservices"
    TEAM_MEMBERS = "team_members"


@dataclass(frozen=True)
class UsageInfo:
    plan: Plan
    limit: int
    used: int
    remaining: int      # -1 when unlimited
    can_add: bool

    @property
    def is_unlimited(self) -> bool:
        return self.limit == UNLIMITED


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    usage: UsageInfo
    upgrade_required: bool


PlanLimits = dict[Plan, dict[UsageType, int]]


def load_plan_limits(path: str | Path | None = None) -> PlanLimits:
    """Load plans.yaml into {Plan: {UsageType: limit}}."""
    with open(path or PLANS_PATH) as f:
        data = yaml.safe_load(f)

    limits: PlanLimits = {}
    for plan_name, plan_limits in data.get("plans", {}).items():
        limits[Plan(plan_name)] = {
            usage_type: int(plan_limits[usage_type.value]) for usage_type in UsageType
        }
    return limits


@lru_cache(maxsize=1)
def plan_limits() -> PlanLimits:
    return load_plan_limits()


def check_limit(
    plan: Plan,
    usage_type: UsageType,
    used: int,
    limits: PlanLimits | None = None,
) -> UsageInfo:
    limit = (limits or plan_limits())[plan][usage_type]
    if limit == UNLIMITED:
        return UsageInfo(plan=plan, limit=UNLIMITED, used=used, remaining=UNLIMITED, can_add=True)
    return UsageInfo(
        plan=plan,
        limit=limit,
        used=used,
        remaining=max(0, limit - used),
        can_add=used < limit,
    )


def decide(
    plan: Plan,
    usage_type: UsageType,
    used: int,
    limits: PlanLimits | None = None,
) -> QuotaDecision:
    usage = check_limit(plan, usage_type, used, limits)
    return QuotaDecision(
        allowed=usage.can_add,
        usage=usage,
        upgrade_required=not usage.can_add and plan == Plan.FREE,
    )


def limit_exceeded_message(usage_type: UsageType, plan: Plan) -> str:
    limit = plan_limits()[plan][usage_type]
    if usage_type == UsageType.REPOSITORIES:
        noun = "repository" if limit == 1 else "repositories"
        upsell = "Upgrade to Pro for unlimited repositories."
    elif usage_type == UsageType.MICROSERVICES:
        noun = "microservice" if limit == 1 else "microservices"
        upsell = "Upgrade to Pro for unlimited microservices."
    else:
        noun = "team member" if limit == 1 else "team members"
        upsell = "Upgrade to Team for unlimited team members."
    return f"You've reached your limit of {limit} {noun} on the {plan.value} plan. {upsell}"


async def get_user_plan(db: AsyncSession, user_id: str) -> tuple[Plan, str]:
    """Effective plan and raw subscription status. Lapsed subscriptions count as free."""
    user = await db.get(User, user_id)
    if user is None:
        return Plan.FREE, "inactive"

    status = user.subscription_status or "inactive"
    if status not in _ACTIVE_SUBSCRIPTION_STATUSES:
        return Plan.FREE, status
    try:
        return Plan(user.subscription_plan or "free"), status
    except ValueError:
        return Plan.FREE, status


async def count_usage(db: AsyncSession, user_id: str, usage_type: UsageType) -> int:
    if usage_type == UsageType.REPOSITORIES:
        stmt = select(func.count(Repository.id)).where(
            Repository.user_id == user_id, Repository.is_active.is_(True)
        )
    elif usage_type == UsageType.MICROSERVICES:
        stmt = (
            select(func.count(Microservice.id))
            .join(Repository, Microservice.repository_id == Repository.id)
            .where(Repository.user_id == user_id, Repository.is_active.is_(True))
        )
    else:
        # The owner occupies a seat too
        stmt = select(func.count(TeamMember.id) + 1).where(TeamMember.owner_id == user_id)
    return int((await db.execute(stmt)).scalar() or 0)


async def can_user_add(db: AsyncSession, user_id: str, usage_type: UsageType) -> QuotaDecision:
    plan, _ = await get_user_plan(db, user_id)
    used = await count_usage(db, user_id, usage_type)
    return decide(plan, usage_type, used)


async def get_user_usage(db: AsyncSession, user_id: str) -> dict:
    plan, status = await get_user_plan(db, user_id)
    usage = {}
    for usage_type in UsageType:
        used = await count_usage(db, user_id, usage_type)
        usage[usage_type] = check_limit(plan, usage_type, used)
    return {"plan": plan, "subscription_status": status, "usage": usage}
