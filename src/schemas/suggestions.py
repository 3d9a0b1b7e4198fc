"""Pydantic schemas for suggestion and microservice endpoints."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel


class MicroserviceSummary(BaseModel):
    id: str
    service_name: str
    manifest_path: str
    status: str
    current_task: str | None = None
    progress: int

    model_config = {"from_attributes": True}


class SuggestionResponse(BaseModel):
    id: str
    microservice_id: str
    commit_sha: str
    commit_message: str
    parsed_status: str | None = None
    parsed_next_steps: list[str] | None = None
    suggested_manifest: dict
    is_applied: bool
    created_at: datetime
    microservice: MicroserviceSummary | None = None

    model_config = {"from_attributes": True}


class MicroserviceHealthResponse(BaseModel):
    microservice_id: str
    service_name: str
    health_status: str
    stored_health_status: str
    last_commit_date: datetime | None = None
    days_since_commit: int | None = None
