"""CommitSuggestion model: a pending manifest patch derived from a commit."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, String, DateTime, Text, ForeignKey, Boolean, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base


class CommitSuggestion(Base):
    __tablename__ = "commit_suggestions"
    # Redelivered pushes must not enqueue a second suggestion for the same commit
    __table_args__ = (
        UniqueConstraint("microservice_id", "commit_sha", name="uq_suggestion_commit"),
        Index("ix_commit_suggestions_pending", "microservice_id", "is_applied"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    microservice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("microservices.id", ondelete="CASCADE"), nullable=False
    )
    commit_sha: Mapped[str] = mapped_column(String(64), nullable=False)
    commit_message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    parsed_status: Mapped[str] = mapped_column(String(100), nullable=True)
    parsed_next_steps: Mapped[list] = mapped_column(JSON, nullable=True)
    suggested_manifest: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_applied: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    microservice = relationship("Microservice", back_populates="suggestions")
