"""Schemas for the admin console."""
from __future__ import annotations

from pydantic import Field

from civic_voice.core.permissions import Role
from civic_voice.schemas.common import CamelModel, Pagination
from civic_voice.schemas.post import PostOut
from civic_voice.schemas.user import AdminUserOut
from civic_voice.services.moderation import ModerationAction


class RoleUpdate(CamelModel):
    role: Role


class SuspendRequest(CamelModel):
    reason: str = Field(..., min_length=1, max_length=500)
    duration: int = Field(7, ge=1, le=365, description="Suspension length in days")


class ModerateRequest(CamelModel):
    action: ModerationAction
    notes: str | None = Field(None, max_length=1000)


class UserPage(CamelModel):
    users: list[AdminUserOut]
    pagination: Pagination


class AdminUserDetail(CamelModel):
    user: AdminUserOut
    recent_posts: list[PostOut]
