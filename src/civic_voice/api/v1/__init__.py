"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    analytics_router,
    auth_router,
    posts_router,
    ratings_router,
    users_router,
)

__all__ = [
    "admin_router",
    "analytics_router",
    "auth_router",
    "posts_router",
    "ratings_router",
    "users_router",
]
