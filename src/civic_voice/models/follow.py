"""SQLAlchemy model for the follow graph."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from civic_voice.db.session import Base
from civic_voice.db.time import utcnow


class UserFollow(Base):
    """``follower_id`` follows ``followee_id``."""

    __tablename__ = "user_follow"
    __table_args__ = (
        CheckConstraint("follower_id <> followee_id", name="ck_user_follow_not_self"),
        Index("ix_user_follow_followee", "followee_id", "created_at"),
    )

    # Composite primary key: a user follows another at most once.
    follower_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    followee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
