"""Microservice model: one tracked service, backed by a manifest file."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, String, DateTime, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base


class ServiceStatus(str, enum.Enum):
    BACKLOG = "Backlog"
    IN_PROGRESS = "In Progress"
    TESTING = "Testing"
    DONE = "Done"


class Microservice(Base):
    __tablename__ = "microservices"
    __table_args__ = (
        UniqueConstraint("repository_id", "manifest_path", name="uq_microservice_manifest_path"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    repository_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    service_name: Mapped[str] = mapped_column(String(200), nullable=False)
    manifest_path: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(30), default=ServiceStatus.BACKLOG.value)
    current_task: Mapped[str] = mapped_column(Text, nullable=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    last_update: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    next_steps: Mapped[list] = mapped_column(JSON, default=list)
    # Written only by tracker.health
    health_status: Mapped[str] = mapped_column(String(20), default="Unknown")
    last_commit_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    repository = relationship("Repository", back_populates="microservices")
    suggestions = relationship(
        "CommitSuggestion",
        back_populates="microservice",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
