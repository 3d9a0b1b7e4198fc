"""vibe.json manifest schema and helpers."""

from __future__ import annotations

import json
from datetime import datetime
from posixpath import basename, dirname

from pydantic import BaseModel, Field, ValidationError

from src.models.microservice import ServiceStatus


class VibeManifest(BaseModel):
    service_name: str | None = Field(default=None, alias="serviceName")
    status: ServiceStatus = ServiceStatus.BACKLOG
    current_task: str | None = Field(default=None, alias="currentTask")
    progress: int = Field(default=0, ge=0, le=100)
    last_update: datetime | None = Field(default=None, alias="lastUpdate")
    next_steps: list[str] = Field(default_factory=list, alias="nextSteps")
    dependencies: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ManifestError(ValueError):
    """Raised when a manifest file cannot be parsed or validated."""


def parse_manifest(content: str) -> VibeManifest:
    try:
        return VibeManifest.model_validate(json.loads(content))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"invalid JSON: {exc.msg}") from exc
    except ValidationError as exc:
        problems = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ManifestError(problems) from exc


def service_name_from_path(path: str) -> str:
    """``services/payment/vibe.json`` -> ``payment``; root manifests have no service directory."""
    parent = basename(dirname(path))
    return parent or "Unknown Service"
