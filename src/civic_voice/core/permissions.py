"""Roles and the per-role capability table.

Access is decided by set membership: an operation names the capability it
needs and a role either holds it or not. Roles are never compared by rank, so
adding a role grants nothing until it is listed here.
"""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class Capability(StrEnum):
    VIEW_PROFILE = "view_profile"
    CREATE_POSTS = "create_posts"
    LIKE = "like"
    COMMENT = "comment"
    REPORT = "report"
    RATE = "rate"
    FOLLOW = "follow"
    MODERATE_CONTENT = "moderate_content"
    VIEW_REPORTS = "view_reports"
    MANAGE_USERS = "manage_users"
    VIEW_ANALYTICS = "view_analytics"


_MEMBER = frozenset(
    {
        Capability.VIEW_PROFILE,
        Capability.CREATE_POSTS,
        Capability.LIKE,
        Capability.COMMENT,
        Capability.REPORT,
        Capability.RATE,
        Capability.FOLLOW,
    }
)

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: _MEMBER,
    Role.MODERATOR: _MEMBER | {Capability.MODERATE_CONTENT, Capability.VIEW_REPORTS},
    Role.ADMIN: _MEMBER
    | {
        Capability.MODERATE_CONTENT,
        Capability.VIEW_REPORTS,
        Capability.MANAGE_USERS,
        Capability.VIEW_ANALYTICS,
    },
}


def capabilities_for(role: str) -> frozenset[Capability]:
    """Return the capability set of ``role``; unknown roles get nothing."""
    try:
        return ROLE_CAPABILITIES[Role(role)]
    except ValueError:
        return frozenset()


def has_capability(role: str, capability: Capability) -> bool:
    return capability in capabilities_for(role)
