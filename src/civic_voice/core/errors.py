"""Domain error taxonomy shared by services and the HTTP layer.

Every expected business outcome that is not a success is one of these
exceptions. Each class carries the HTTP status it maps to and a message that
is safe to show to the caller. Only ``StoreUnavailable`` is retryable.
"""

from __future__ import annotations

from fastapi import status


class CivicError(Exception):
    """Base class for all expected failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request failed"
    kind: str = "error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# --- validation -------------------------------------------------------------


class ValidationFailed(CivicError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"
    kind = "validation"


class WeakPassword(ValidationFailed):
    message = "Password is too short"


class EmptyText(ValidationFailed):
    message = "Text must not be empty"


class InvalidRating(ValidationFailed):
    message = "Rating score must be between 0 and 5"


class SelfLikeNotAllowed(ValidationFailed):
    message = "You cannot like your own post"


class CannotFollowSelf(ValidationFailed):
    message = "Cannot follow yourself"


# --- authentication ---------------------------------------------------------


class AuthenticationError(CivicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"
    kind = "authentication"


class NotAuthenticated(AuthenticationError):
    message = "Not authenticated"


class InvalidToken(AuthenticationError):
    message = "Could not validate credentials"


class TokenExpired(InvalidToken):
    message = "Token has expired"


class TokenMalformed(InvalidToken):
    pass


class TokenSignatureMismatch(InvalidToken):
    pass


class InvalidCredentials(AuthenticationError):
    message = "Invalid email or password"


# --- authorization ----------------------------------------------------------


class Forbidden(CivicError):
    """Uniform authorization failure; the reason is only logged."""

    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"
    kind = "authorization"


class NotAdmin(Forbidden):
    message = "Admin access required"


# --- conflict ---------------------------------------------------------------


class Conflict(CivicError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict"
    kind = "conflict"


class DuplicateEmail(Conflict):
    message = "An account with that email already exists"


class DuplicateUsername(Conflict):
    message = "That username is already taken"


class AlreadyLiked(Conflict):
    message = "You have already liked this post"


class NotLiked(Conflict):
    message = "You have not liked this post"


class AlreadyReported(Conflict):
    message = "You have already reported this post"


class AlreadyFollowing(Conflict):
    message = "Already following this user"


class NotFollowing(Conflict):
    message = "Not following this user"


# --- not found --------------------------------------------------------------


class NotFound(CivicError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"
    kind = "not_found"


class UserNotFound(NotFound):
    message = "User not found"


class PostNotFound(NotFound):
    message = "Post not found"


# --- internal ---------------------------------------------------------------


class StoreUnavailable(CivicError):
    """The backing store failed or timed out. Safe for the client to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Service temporarily unavailable, please retry"
    kind = "internal"
    retryable = True
