"""User model: GitHub account owning connected repositories."""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    github_username: Mapped[str] = mapped_column(String(200), nullable=False)
    access_token: Mapped[str] = mapped_column(Text, nullable=True)
    subscription_plan: Mapped[str] = mapped_column(String(20), default="free")  # free, pro, team
    subscription_status: Mapped[str] = mapped_column(String(30), default="inactive")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    repositories = relationship("Repository", back_populates="user", lazy="selectin")
