"""User-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from civic_voice.models import Interest
from civic_voice.schemas.common import CamelModel, Pagination


class RegisterRequest(CamelModel):
    """Self-registration payload. The role is never taken from the client."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")
    # Length policy is enforced by the credential store, which reports WeakPassword.
    password: str = Field(..., max_length=128)
    full_name: str = Field(..., min_length=2, max_length=100)
    bio: str = Field("", max_length=500)
    interests: list[Interest] = Field(default_factory=list)


class LoginRequest(CamelModel):
    """Email and password login."""

    email: EmailStr
    password: str


class ProfileUpdate(CamelModel):
    """Partial profile update."""

    full_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=500)
    interests: list[Interest] | None = None

    @field_validator("full_name")
    @classmethod
    def _full_name_length(cls, value: str | None) -> str | None:
        if value is not None and len(value.strip()) < 2:
            raise ValueError("Full name must be at least 2 characters")
        return value


class UserStats(CamelModel):
    total_posts: int
    total_votes: int
    followers: int = 0
    following: int = 0


class AuthorSummary(CamelModel):
    """Minimal author details embedded in posts and comments."""

    id: str
    username: str
    full_name: str
    is_verified: bool


class PublicUserOut(CamelModel):
    """Profile as seen by other users."""

    id: str
    username: str
    full_name: str
    bio: str
    interests: list[str]
    role: str
    is_verified: bool
    stats: UserStats
    created_at: datetime


class UserOut(PublicUserOut):
    """Profile as seen by its owner."""

    email: str
    is_active: bool
    last_active_at: datetime | None = None


class AdminUserOut(UserOut):
    """Profile as seen from the admin console."""

    suspended_until: datetime | None = None
    suspension_reason: str = ""
    admin_notes: str = ""


class AuthData(CamelModel):
    """Issued session token with the authenticated profile."""

    token: str
    user: UserOut


class FollowOut(CamelModel):
    """Caller's following count and the target's follower count."""

    following: int
    followers: int


class FollowerPage(CamelModel):
    followers: list[PublicUserOut]
    pagination: Pagination


class FollowingPage(CamelModel):
    following: list[PublicUserOut]
    pagination: Pagination
