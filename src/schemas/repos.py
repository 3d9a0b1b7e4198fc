"""Pydantic schemas for repository connection endpoints."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field


class ConnectRepoRequest(BaseModel):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    setup_webhook: bool = True


class RepositoryResponse(BaseModel):
    id: str
    github_repo_id: int
    owner: str
    repo_name: str
    full_name: str
    webhook_id: int | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ConnectRepoResponse(BaseModel):
    repository: RepositoryResponse
    webhook_created: bool
    microservices_created: int
    errors: list[str] = []
