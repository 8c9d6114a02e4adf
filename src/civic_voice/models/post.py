"""SQLAlchemy models for posts and the engagement they own."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from civic_voice.db.session import Base
from civic_voice.db.time import utcnow
from civic_voice.models.user import User


class PostCategory(StrEnum):
    POLITICS = "Politics"
    EDUCATION = "Education"
    HEALTHCARE = "Healthcare"
    ECONOMY = "Economy"
    ENVIRONMENT = "Environment"
    TECHNOLOGY = "Technology"
    SPORTS = "Sports"
    ENTERTAINMENT = "Entertainment"
    GENERAL = "General"


class ReportReason(StrEnum):
    SPAM = "spam"
    INAPPROPRIATE = "inappropriate"
    HARASSMENT = "harassment"
    FALSE_INFORMATION = "false_information"
    OTHER = "other"


class Post(Base):
    """Content authored by a user.

    The post owns its likes, comments and reports; users are referenced by id
    only. ``like_count`` and ``comment_count`` cache the sizes of the owned
    collections for list sorting and must always equal them.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_author_created", "author_id", "created_at"),
        Index("ix_posts_category_created", "category", "created_at"),
        Index("ix_posts_public_created", "is_public", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        String(32), nullable=False, default=PostCategory.GENERAL.value
    )

    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_reported: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_moderated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    moderation_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    author: Mapped[User] = relationship("User", lazy="joined")

    likes: Mapped[list[PostLike]] = relationship(
        "PostLike",
        cascade="all, delete-orphan",
        order_by="PostLike.created_at",
    )
    comments: Mapped[list[PostComment]] = relationship(
        "PostComment",
        cascade="all, delete-orphan",
        order_by="PostComment.id",
    )
    reports: Mapped[list[PostReport]] = relationship(
        "PostReport",
        cascade="all, delete-orphan",
        order_by="PostReport.created_at",
    )


class PostLike(Base):
    """Membership of a user in a post's like set."""

    __tablename__ = "post_like"
    __table_args__ = (Index("ix_post_like_user_id", "user_id"),)

    # Composite primary key: a user appears at most once in a post's like set.
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PostComment(Base):
    """Append-only comment; ``id`` order is insertion order."""

    __tablename__ = "post_comment"
    __table_args__ = (Index("ix_post_comment_post_id", "post_id", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    author: Mapped[User] = relationship("User", lazy="joined")


class PostReport(Base):
    """A user's report against a post; one per user per post."""

    __tablename__ = "post_report"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    reporter_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), primary_key=True)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
