"""SQLAlchemy model for registered accounts."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from civic_voice.core.permissions import Role
from civic_voice.db.session import Base
from civic_voice.db.time import utcnow


class Interest(StrEnum):
    POLITICS = "Politics"
    EDUCATION = "Education"
    HEALTHCARE = "Healthcare"
    ECONOMY = "Economy"
    ENVIRONMENT = "Environment"
    TECHNOLOGY = "Technology"
    SPORTS = "Sports"
    ENTERTAINMENT = "Entertainment"


class User(Base):
    """A platform account.

    ``email`` and ``username`` are stored lowercased so uniqueness is
    case-insensitive. ``total_posts``, ``total_votes`` and the follow counts are a
    cache of values derivable from the post, like and follow tables; they are
    only ever changed by atomic increments.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_is_active", "is_active"),
        Index("ix_users_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    interests: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    role: Mapped[str] = mapped_column(String(16), nullable=False, default=Role.USER.value)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    total_posts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Likes received across all posts this user authored.
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    follower_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    suspended_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    suspension_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    admin_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def stats(self) -> dict[str, int]:
        return {
            "totalPosts": self.total_posts,
            "totalVotes": self.total_votes,
            "followers": self.follower_count,
            "following": self.following_count,
        }
