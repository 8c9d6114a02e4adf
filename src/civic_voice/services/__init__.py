"""Business logic services for the Civic Voice application."""

from .moderation import ModerationAction, ModerationService

__all__ = [
    "ModerationAction",
    "ModerationService",
]
