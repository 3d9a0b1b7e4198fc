"""Commit-recency health classification for tracked microservices.

``classify_health`` is a pure function of (now, last_commit_date).
``run_health_sweep`` is the scheduled caller: it refreshes each service's
last commit date from GitHub and stores the derived state.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.microservice import Microservice
from src.models.repository import Repository
from src.models.user import User
from tracker.github_client import GitHubClient

logger = logging.getLogger(__name__)

HEALTHY_MAX_DAYS = 7
STALE_MAX_DAYS = 30


class HealthStatus(str, enum.Enum):
    HEALTHY = "Healthy"
    STALE = "Stale"
    INACTIVE = "Inactive"
    UNKNOWN = "Unknown"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def days_since(now: datetime, then: datetime) -> int:
    """Whole days elapsed between then and now (floored)."""
    return (_as_utc(now) - _as_utc(then)).days


def classify_health(now: datetime, last_commit_date: datetime | None) -> HealthStatus:
    if last_commit_date is None:
        return HealthStatus.UNKNOWN
    age = days_since(now, last_commit_date)
    if age <= HEALTHY_MAX_DAYS:
        return HealthStatus.HEALTHY
    if age <= STALE_MAX_DAYS:
        return HealthStatus.STALE
    return HealthStatus.INACTIVE


@dataclass
class HealthCheckResult:
    microservice_id: str
    service_name: str
    previous_status: str
    new_status: HealthStatus
    last_commit_date: datetime | None
    days_since_commit: int | None
    checked_at: datetime


@dataclass
class HealthSweepSummary:
    results: list[HealthCheckResult] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)

    @property
    def total_services(self) -> int:
        return len(self.results) + len(self.errors)

    def count(self, status: HealthStatus) -> int:
        return sum(1 for r in self.results if r.new_status == status)

    def as_dict(self) -> dict:
        return {
            "total_services": self.total_services,
            "healthy": self.count(HealthStatus.HEALTHY),
            "stale": self.count(HealthStatus.STALE),
            "inactive": self.count(HealthStatus.INACTIVE),
            "unknown": self.count(HealthStatus.UNKNOWN),
            "results": [
                {
                    "microservice_id": r.microservice_id,
                    "service_name": r.service_name,
                    "previous_status": r.previous_status,
                    "new_status": r.new_status.value,
                    "last_commit_date": r.last_commit_date.isoformat() if r.last_commit_date else None,
                    "days_since_commit": r.days_since_commit,
                    "checked_at": r.checked_at.isoformat(),
                }
                for r in self.results
            ],
        }


async def run_health_sweep(
    db: AsyncSession,
    client_factory: Callable[[str], GitHubClient] = GitHubClient,
    now: datetime | None = None,
) -> HealthSweepSummary:
    """Refresh health for every microservice; a failing service never stops the sweep."""
    now = now or datetime.now(timezone.utc)
    summary = HealthSweepSummary()

    rows = (
        await db.execute(
            select(
                Microservice.id,
                Microservice.service_name,
                Microservice.manifest_path,
                Microservice.health_status,
                Repository.owner,
                Repository.repo_name,
                User.id.label("user_id"),
                User.access_token,
            )
            .join(Repository, Microservice.repository_id == Repository.id)
            .join(User, Repository.user_id == User.id)
            .order_by(Microservice.service_name)
        )
    ).all()

    clients: dict[str, GitHubClient] = {}
    try:
        for row in rows:
            try:
                if not row.access_token:
                    summary.errors.append(
                        {"microservice_id": row.id, "error": "User access token not found"}
                    )
                    continue

                client = clients.get(row.user_id)
                if client is None:
                    client = clients[row.user_id] = client_factory(row.access_token)

                last_commit = await client.latest_commit_date(
                    row.owner, row.repo_name, row.manifest_path
                )
                new_status = classify_health(now, last_commit)

                # Status and date are written together so the stored state
                # always re-derives from last_commit_date alone.
                await db.execute(
                    update(Microservice)
                    .where(Microservice.id == row.id)
                    .values(health_status=new_status.value, last_commit_date=last_commit)
                )
                await db.commit()

                summary.results.append(HealthCheckResult(
                    microservice_id=row.id,
                    service_name=row.service_name,
                    previous_status=row.health_status,
                    new_status=new_status,
                    last_commit_date=last_commit,
                    days_since_commit=days_since(now, last_commit) if last_commit else None,
                    checked_at=now,
                ))
                if row.health_status != new_status.value:
                    logger.info(
                        "Health of %s changed %s -> %s",
                        row.service_name, row.health_status, new_status.value,
                    )
            except Exception as exc:
                await db.rollback()
                logger.warning("Health check failed for %s: %s", row.id, exc)
                summary.errors.append({"microservice_id": row.id, "error": type(exc).__name__})
    finally:
        for client in clients.values():
            await client.close()

    return summary
