"""Follow graph between accounts.

Each edge is one ``user_follow`` row. ``User.follower_count`` and
``User.following_count`` cache the number of edges on either side and move
with the row in the same transaction, the same way likes drive
``total_votes``.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_voice.core.errors import (
    AlreadyFollowing,
    CannotFollowSelf,
    NotFollowing,
    UserNotFound,
)
from civic_voice.core.settings import settings
from civic_voice.db.errors import is_unique_violation
from civic_voice.models import User, UserFollow
from civic_voice.services import user_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowCounts:
    """Counts reported back after a follow or unfollow."""

    following: int
    followers: int


def _counts(db: Session, follower_id: str, followee_id: str) -> FollowCounts:
    following = db.scalar(select(User.following_count).where(User.id == follower_id))
    followers = db.scalar(select(User.follower_count).where(User.id == followee_id))
    return FollowCounts(following=following or 0, followers=followers or 0)


def _active_user(db: Session, user_id: str) -> User:
    user = user_service.require_user(db, user_id)
    if not user.is_active:
        raise UserNotFound()
    return user


def is_following(db: Session, follower_id: str, followee_id: str) -> bool:
    found = db.scalar(
        select(func.count())
        .select_from(UserFollow)
        .where(UserFollow.follower_id == follower_id, UserFollow.followee_id == followee_id)
    )
    return bool(found)


def follow(db: Session, follower_id: str, followee_id: str) -> FollowCounts:
    """Make ``follower_id`` follow ``followee_id``.

    Raises:
        CannotFollowSelf: Both ids name the same account.
        UserNotFound: The target does not exist or is deactivated.
        AlreadyFollowing: The edge already exists, including when a
            concurrent request created it first.
    """
    if follower_id == followee_id:
        raise CannotFollowSelf()
    _active_user(db, followee_id)
    if is_following(db, follower_id, followee_id):
        raise AlreadyFollowing()

    db.add(UserFollow(follower_id=follower_id, followee_id=followee_id))
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise AlreadyFollowing() from exc
        raise

    user_service.update_counters(db, follower_id, following=1)
    user_service.update_counters(db, followee_id, followers=1)
    counts = _counts(db, follower_id, followee_id)
    db.commit()
    logger.debug("User %s followed %s", follower_id, followee_id)
    return counts


def unfollow(db: Session, follower_id: str, followee_id: str) -> FollowCounts:
    """Remove the edge; only the request whose delete hits a row moves the counters."""
    user_service.require_user(db, followee_id)
    result = db.execute(
        delete(UserFollow).where(
            UserFollow.follower_id == follower_id, UserFollow.followee_id == followee_id
        )
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFollowing()

    user_service.update_counters(db, follower_id, following=-1)
    user_service.update_counters(db, followee_id, followers=-1)
    counts = _counts(db, follower_id, followee_id)
    db.commit()
    logger.debug("User %s unfollowed %s", follower_id, followee_id)
    return counts


def _page(
    db: Session, *, match, join_on, page: int, limit: int
) -> tuple[Sequence[User], int]:
    limit = max(1, min(limit, settings.max_page_size))
    offset = (max(page, 1) - 1) * limit
    total = db.scalar(select(func.count()).select_from(UserFollow).where(match)) or 0
    users = db.scalars(
        select(User)
        .join(UserFollow, join_on)
        .where(match)
        .order_by(UserFollow.created_at.desc(), User.id)
        .offset(offset)
        .limit(limit)
    ).all()
    return users, total


def list_followers(
    db: Session, user_id: str, *, page: int = 1, limit: int = 20
) -> tuple[Sequence[User], int]:
    """Accounts following ``user_id``, most recent first."""
    user_service.require_user(db, user_id)
    return _page(
        db,
        match=UserFollow.followee_id == user_id,
        join_on=UserFollow.follower_id == User.id,
        page=page,
        limit=limit,
    )


def list_following(
    db: Session, user_id: str, *, page: int = 1, limit: int = 20
) -> tuple[Sequence[User], int]:
    """Accounts ``user_id`` follows, most recent first."""
    user_service.require_user(db, user_id)
    return _page(
        db,
        match=UserFollow.follower_id == user_id,
        join_on=UserFollow.followee_id == User.id,
        page=page,
        limit=limit,
    )
