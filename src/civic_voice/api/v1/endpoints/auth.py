"""Authentication endpoints for the Civic Voice API."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from civic_voice.api.v1.dependencies import SessionDep, require_capability
from civic_voice.core.errors import NotAdmin
from civic_voice.core.permissions import Capability, Role
from civic_voice.core.security import create_access_token
from civic_voice.models import User
from civic_voice.schemas.common import Envelope
from civic_voice.schemas.user import AuthData, LoginRequest, RegisterRequest, UserOut
from civic_voice.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _issue(user: User) -> AuthData:
    token = create_access_token(user.id, user.role)
    return AuthData(token=token, user=UserOut.model_validate(user))


@router.post("/register", response_model=Envelope[AuthData], status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: SessionDep) -> Envelope[AuthData]:
    """Create a ``user``-role account and return a session token for it."""
    user = user_service.create_user(
        db,
        email=payload.email,
        username=payload.username,
        password=payload.password,
        full_name=payload.full_name,
        bio=payload.bio,
        interests=[interest.value for interest in payload.interests],
    )
    return Envelope(message="User registered successfully", data=_issue(user))


@router.post("/login", response_model=Envelope[AuthData])
def login(payload: LoginRequest, db: SessionDep) -> Envelope[AuthData]:
    """Exchange email and password for a session token."""
    user = user_service.authenticate(db, payload.email, payload.password)
    return Envelope(message="Login successful", data=_issue(user))


@router.post("/admin/login", response_model=Envelope[AuthData])
def admin_login(payload: LoginRequest, db: SessionDep) -> Envelope[AuthData]:
    """Login restricted to admin accounts; admin sessions are shorter lived."""
    user = user_service.authenticate(db, payload.email, payload.password)
    if user.role != Role.ADMIN:
        logger.warning("Admin login refused for user %s with role %s", user.id, user.role)
        raise NotAdmin()
    return Envelope(message="Admin login successful", data=_issue(user))


@router.get("/me", response_model=Envelope[UserOut])
def read_me(
    current_user: Annotated[User, Depends(require_capability(Capability.VIEW_PROFILE))],
) -> Envelope[UserOut]:
    """Return the caller's own profile with stats."""
    return Envelope(data=UserOut.model_validate(current_user))
