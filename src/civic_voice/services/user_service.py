"""Credential store: account records, password checks and counter updates."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import timedelta

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_voice.core import security
from civic_voice.core.errors import (
    DuplicateEmail,
    DuplicateUsername,
    InvalidCredentials,
    UserNotFound,
    ValidationFailed,
    WeakPassword,
)
from civic_voice.core.permissions import Role
from civic_voice.core.settings import settings
from civic_voice.db.errors import is_unique_violation
from civic_voice.db.time import utcnow
from civic_voice.models import User

__all__ = [
    "authenticate",
    "create_user",
    "find_by_email",
    "find_by_username",
    "list_users",
    "require_user",
    "search_users",
    "set_active",
    "set_role",
    "suspend_user",
    "update_counters",
    "update_profile",
    "verify_password",
]

logger = logging.getLogger(__name__)

# Verified against when the email is unknown so both branches cost one bcrypt check.
_DUMMY_HASH = security.hash_password("civic-voice-timing-equalizer")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_username(username: str) -> str:
    return username.strip().lower()


def require_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


def find_by_email(db: Session, email: str) -> User:
    """Return the user registered under ``email`` (case-insensitive)."""
    user = db.scalars(select(User).where(User.email == normalize_email(email))).first()
    if user is None:
        raise UserNotFound()
    return user


def find_by_username(db: Session, username: str) -> User:
    """Return the user registered under ``username`` (case-insensitive)."""
    user = db.scalars(
        select(User).where(User.username == normalize_username(username))
    ).first()
    if user is None:
        raise UserNotFound()
    return user


def _email_taken(db: Session, email: str) -> bool:
    return db.scalar(select(func.count()).select_from(User).where(User.email == email)) > 0


def _username_taken(db: Session, username: str) -> bool:
    return (
        db.scalar(select(func.count()).select_from(User).where(User.username == username)) > 0
    )


def create_user(
    db: Session,
    *,
    email: str,
    username: str,
    password: str,
    full_name: str,
    bio: str = "",
    interests: Iterable[str] = (),
    role: Role = Role.USER,
    is_verified: bool = False,
) -> User:
    """Persist a new account with a salted password hash.

    Self-registration always passes the default ``Role.USER``; other roles are
    provisioned out-of-band (seed script, admin role change).

    Raises:
        WeakPassword: ``password`` is shorter than the configured minimum.
        DuplicateEmail: The email is already registered, in any letter case.
        DuplicateUsername: The username is already taken, in any letter case.
    """
    if len(password) < settings.password_min_length:
        raise WeakPassword(
            f"Password must be at least {settings.password_min_length} characters"
        )

    normalized_email = normalize_email(email)
    normalized_username = normalize_username(username)
    if _email_taken(db, normalized_email):
        raise DuplicateEmail()
    if _username_taken(db, normalized_username):
        raise DuplicateUsername()

    user = User(
        email=normalized_email,
        username=normalized_username,
        password_hash=security.hash_password(password),
        full_name=full_name.strip(),
        bio=bio,
        interests=sorted(set(interests)),
        role=role.value,
        is_verified=is_verified,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same identity.
        db.rollback()
        if not is_unique_violation(exc):
            raise
        if _email_taken(db, normalized_email):
            raise DuplicateEmail() from exc
        raise DuplicateUsername() from exc
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, user.role)
    return user


def verify_password(user: User, plaintext: str) -> bool:
    """Check a candidate password against the user's stored hash."""
    return security.verify_password(plaintext, user.password_hash)


def authenticate(db: Session, email: str, password: str) -> User:
    """Resolve credentials to an active user and stamp ``last_active_at``.

    Every failure, including a deactivated account, is reported as
    ``InvalidCredentials``. There is no lockout after repeated failures.
    """
    try:
        user = find_by_email(db, email)
    except UserNotFound as exc:
        security.verify_password(password, _DUMMY_HASH)
        logger.info("Login failed: unknown email")
        raise InvalidCredentials() from exc
    if not verify_password(user, password):
        logger.info("Login failed for user %s: wrong password", user.id)
        raise InvalidCredentials()
    if not user.is_active:
        logger.warning("Login refused for deactivated user %s", user.id)
        raise InvalidCredentials()

    user.last_active_at = utcnow()
    db.commit()
    db.refresh(user)
    return user


def update_counters(
    db: Session,
    user_id: str,
    *,
    posts: int = 0,
    votes: int = 0,
    followers: int = 0,
    following: int = 0,
) -> None:
    """Atomically shift the user's cached counters by the given deltas.

    Issued as a single ``UPDATE ... SET col = col + :delta`` so concurrent
    callers never lose an increment. Runs inside the caller's transaction and
    does not commit.
    """
    deltas = {
        "total_posts": posts,
        "total_votes": votes,
        "follower_count": followers,
        "following_count": following,
    }
    values = {name: getattr(User, name) + delta for name, delta in deltas.items() if delta}
    if not values:
        return
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(values)
        .execution_options(synchronize_session=False)
    )
    logger.debug(
        "Counters for %s changed by posts=%+d votes=%+d followers=%+d following=%+d",
        user_id,
        posts,
        votes,
        followers,
        following,
    )


def update_profile(
    db: Session,
    user: User,
    *,
    full_name: str | None = None,
    bio: str | None = None,
    interests: Iterable[str] | None = None,
) -> User:
    """Apply partial profile updates."""
    if full_name is not None:
        user.full_name = full_name.strip()
    if bio is not None:
        user.bio = bio
    if interests is not None:
        user.interests = sorted(set(interests))
    db.commit()
    db.refresh(user)
    return user


def _page_bounds(page: int, limit: int) -> tuple[int, int]:
    limit = max(1, min(limit, settings.max_page_size))
    return (max(page, 1) - 1) * limit, limit


def search_users(
    db: Session, query: str, *, page: int = 1, limit: int = 20
) -> tuple[Sequence[User], int]:
    """Search active users by full name or username."""
    pattern = f"%{query.strip().lower()}%"
    condition = (
        or_(func.lower(User.full_name).like(pattern), User.username.like(pattern)),
        User.is_active.is_(True),
    )
    offset, limit = _page_bounds(page, limit)
    total = db.scalar(select(func.count()).select_from(User).where(*condition)) or 0
    users = db.scalars(
        select(User).where(*condition).order_by(User.full_name).offset(offset).limit(limit)
    ).all()
    return users, total


def list_users(
    db: Session,
    *,
    search: str | None = None,
    role: Role | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[Sequence[User], int]:
    """Return users for the admin console, newest first."""
    conditions = []
    if search:
        pattern = f"%{search.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(User.full_name).like(pattern),
                User.username.like(pattern),
                User.email.like(pattern),
            )
        )
    if role is not None:
        conditions.append(User.role == role.value)
    if status == "active":
        conditions.append(User.is_active.is_(True))
    elif status == "suspended":
        conditions.append(User.is_active.is_(False))

    offset, limit = _page_bounds(page, limit)
    total = db.scalar(select(func.count()).select_from(User).where(*conditions)) or 0
    users = db.scalars(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id)
        .offset(offset)
        .limit(limit)
    ).all()
    return users, total


def set_role(db: Session, actor: User, target: User, role: Role) -> User:
    """Change ``target``'s role. Tokens already issued keep their old role claim."""
    if actor.id == target.id:
        raise ValidationFailed("Cannot change your own role")
    previous = target.role
    target.role = role.value
    db.commit()
    db.refresh(target)
    logger.info("User %s changed role of %s from %s to %s", actor.id, target.id, previous, role)
    return target


def suspend_user(
    db: Session, actor: User, target: User, *, reason: str, duration_days: int = 7
) -> User:
    """Deactivate ``target``; takes effect on their very next authorized call."""
    if actor.id == target.id:
        raise ValidationFailed("Cannot suspend yourself")
    now = utcnow()
    target.is_active = False
    target.suspended_until = now + timedelta(days=duration_days)
    target.suspension_reason = reason
    target.admin_notes = f"{target.admin_notes}\nSuspended on {now.isoformat()}: {reason}".strip()
    db.commit()
    db.refresh(target)
    logger.info("User %s suspended %s for %d days", actor.id, target.id, duration_days)
    return target


def set_active(db: Session, target: User, active: bool = True) -> User:
    """Reactivate (or plainly deactivate) an account."""
    now = utcnow()
    target.is_active = active
    if active:
        target.suspended_until = None
        target.suspension_reason = ""
        target.admin_notes = f"{target.admin_notes}\nActivated on {now.isoformat()}".strip()
    db.commit()
    db.refresh(target)
    return target
