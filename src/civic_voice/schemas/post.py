"""Post-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from civic_voice.models import PostCategory, ReportReason
from civic_voice.schemas.common import CamelModel, Pagination
from civic_voice.schemas.user import AuthorSummary, PublicUserOut


class PostCreate(CamelModel):
    """Schema for creating a new post."""

    content: str = Field(..., max_length=2000, description="Post body, 1..2000 characters")
    category: PostCategory = PostCategory.GENERAL


class PostUpdate(CamelModel):
    content: str | None = Field(None, max_length=2000)
    category: PostCategory | None = None


class CommentCreate(CamelModel):
    content: str = Field(..., max_length=500, description="Comment text, 1..500 characters")


class CommentOut(CamelModel):
    id: int
    post_id: int
    content: str
    author: AuthorSummary
    created_at: datetime


class PostOut(CamelModel):
    """Schema for post information returned by the API."""

    id: int
    content: str
    category: str
    author: AuthorSummary
    like_count: int
    comment_count: int
    is_public: bool
    is_reported: bool
    is_moderated: bool
    created_at: datetime
    updated_at: datetime


class PostDetail(PostOut):
    comments: list[CommentOut] = Field(default_factory=list)
    liked_by_me: bool | None = None


class PostPage(CamelModel):
    posts: list[PostOut]
    pagination: Pagination


class CommentPage(CamelModel):
    comments: list[CommentOut]
    pagination: Pagination


class LikeOut(CamelModel):
    like_count: int
    liked: bool


class EngagementOut(CamelModel):
    """Counts derived from the like and comment rows."""

    like_count: int
    comment_count: int


class ReportCreate(CamelModel):
    reason: ReportReason
    description: str = Field("", max_length=500)


class ReportOut(CamelModel):
    post_id: int
    reporter_id: str
    reason: str
    description: str
    created_at: datetime


class ReportedPostOut(PostOut):
    moderation_notes: str
    reports: list[ReportOut]


class ReportPage(CamelModel):
    reports: list[ReportedPostOut]
    pagination: Pagination


class UserProfile(CamelModel):
    """Public profile with the author's most recent posts."""

    user: PublicUserOut
    recent_posts: list[PostOut]


class UserSearchPage(CamelModel):
    users: list[PublicUserOut]
    pagination: Pagination
