"""Pydantic schemas for usage and quota endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from src.usage_limits import UsageType


class UsageInfoResponse(BaseModel):
    plan: str
    limit: int
    used: int
    remaining: int
    can_add: bool
    is_unlimited: bool


class UsageResponse(BaseModel):
    plan: str
    subscription_status: str
    repositories: UsageInfoResponse
    microservices: UsageInfoResponse
    team_members: UsageInfoResponse


class UsageCheckRequest(BaseModel):
    type: UsageType


class UsageCheckResponse(BaseModel):
    allowed: bool
    usage: UsageInfoResponse
    upgrade_required: bool = False
    message: str | None = None
