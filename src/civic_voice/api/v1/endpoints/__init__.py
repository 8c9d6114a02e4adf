"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .analytics import router as analytics_router
from .auth import router as auth_router
from .posts import router as posts_router
from .ratings import router as ratings_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "analytics_router",
    "auth_router",
    "posts_router",
    "ratings_router",
    "users_router",
]
