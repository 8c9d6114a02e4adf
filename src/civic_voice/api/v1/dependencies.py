"""Shared API dependencies for authentication and authorization.

Every protected route goes through two steps:

1. ``get_token_claims`` verifies the bearer token. This is pure and never
   touches the database.
2. ``get_current_user`` loads the account named by the token on every call,
   so deactivation takes effect immediately even for tokens that still verify.

``require_capability`` adds a capability-set check on top. The capability must
be held by the role snapshotted in the token *and* by the account's current
role. A promotion is therefore only usable after the next login, while a
demotion applies at once. Every authorization failure is reported to the
caller as the same ``Forbidden``; the specific reason is only logged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from civic_voice.core.errors import Forbidden, InvalidToken, NotAuthenticated
from civic_voice.core.permissions import Capability, has_capability
from civic_voice.core.security import TokenClaims, decode_access_token
from civic_voice.db.session import get_db
from civic_voice.models import User

logger = logging.getLogger(__name__)

# HTTP Bearer scheme; missing credentials are reported by us, not by FastAPI.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_token_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> TokenClaims:
    """Extract and verify the bearer token.

    Raises:
        NotAuthenticated: No bearer token was sent
        InvalidToken: The token is expired, malformed or not signed by us
    """
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated()
    return decode_access_token(credentials.credentials)


TokenClaimsDep = Annotated[TokenClaims, Depends(get_token_claims)]


def get_current_user(claims: TokenClaimsDep, db: SessionDep) -> User:
    """Resolve the token subject to a live, active account.

    Args:
        claims: Verified token claims
        db: Database session

    Returns:
        User object for the authenticated caller

    Raises:
        InvalidToken: The subject no longer exists
        Forbidden: The account has been deactivated
    """
    user = db.get(User, claims.subject)
    if user is None:
        logger.warning("Token subject %s does not exist", claims.subject)
        raise InvalidToken()
    if not user.is_active:
        logger.warning("Rejected deactivated user %s", user.id)
        raise Forbidden()
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def authorize(claims: TokenClaims, user: User, capability: Capability) -> None:
    """Raise ``Forbidden`` unless both the token role and the live role hold ``capability``."""
    if not has_capability(claims.role, capability):
        logger.warning(
            "User %s denied %s: token role %r lacks it", user.id, capability, claims.role
        )
        raise Forbidden()
    if not has_capability(user.role, capability):
        logger.warning(
            "User %s denied %s: current role %r lacks it", user.id, capability, user.role
        )
        raise Forbidden()


def require_capability(capability: Capability) -> Callable[..., User]:
    """Build a dependency that admits only callers holding ``capability``."""

    def dependency(claims: TokenClaimsDep, user: CurrentUserDep) -> User:
        authorize(claims, user, capability)
        return user

    dependency.__name__ = f"require_{capability.value}"
    return dependency


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User | None:
    """Return the caller on public routes when a usable token is supplied."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidToken:
        return None
    user = db.get(User, claims.subject)
    if user is None or not user.is_active:
        return None
    return user


OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
