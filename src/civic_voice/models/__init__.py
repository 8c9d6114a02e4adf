"""SQLAlchemy models for the Civic Voice application."""

from .follow import UserFollow
from .post import Post, PostCategory, PostComment, PostLike, PostReport, ReportReason
from .rating import GovernmentRating, RatingCategory
from .user import Interest, User

__all__ = [
    "Post", "PostCategory", "PostComment", "PostLike", "PostReport", "ReportReason",
    "GovernmentRating", "RatingCategory",
    "Interest", "User", "UserFollow",
]
