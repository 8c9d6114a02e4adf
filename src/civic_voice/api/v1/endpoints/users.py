"""Profile, search and follow endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from civic_voice.api.v1.dependencies import (
    CurrentUserDep,
    SessionDep,
    TokenClaimsDep,
    authorize,
    require_capability,
)
from civic_voice.core.errors import UserNotFound
from civic_voice.core.permissions import Capability
from civic_voice.core.settings import settings
from civic_voice.models import User
from civic_voice.schemas.common import Envelope, Pagination
from civic_voice.schemas.post import PostOut, PostPage, UserProfile, UserSearchPage
from civic_voice.schemas.user import (
    FollowerPage,
    FollowingPage,
    FollowOut,
    ProfileUpdate,
    PublicUserOut,
    UserOut,
)
from civic_voice.services import engagement, follows, user_service

router = APIRouter(prefix="/users", tags=["users"])

RECENT_POSTS = 20

PageQuery = Annotated[int, Query(ge=1)]
LimitQuery = Annotated[int, Query(ge=1, le=settings.max_page_size)]


def _visible_user(db: Session, user_id: str) -> User:
    user = user_service.require_user(db, user_id)
    if not user.is_active:
        raise UserNotFound()
    return user


@router.get("/search", response_model=Envelope[UserSearchPage])
def search_users(
    db: SessionDep,
    q: Annotated[str, Query(min_length=1, max_length=100)],
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Envelope[UserSearchPage]:
    """Case-insensitive search over full name and username."""
    users, total = user_service.search_users(db, q, page=page, limit=limit)
    return Envelope(
        data=UserSearchPage(
            users=[PublicUserOut.model_validate(user) for user in users],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.get("/{user_id}", response_model=Envelope[UserProfile])
def get_profile(user_id: str, db: SessionDep) -> Envelope[UserProfile]:
    user = _visible_user(db, user_id)
    posts, _ = engagement.list_posts(db, author_id=user.id, limit=RECENT_POSTS)
    return Envelope(
        data=UserProfile(
            user=PublicUserOut.model_validate(user),
            recent_posts=[PostOut.model_validate(post) for post in posts],
        )
    )


@router.get("/{user_id}/posts", response_model=Envelope[PostPage])
def list_user_posts(
    user_id: str,
    db: SessionDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Envelope[PostPage]:
    user = _visible_user(db, user_id)
    posts, total = engagement.list_posts(db, author_id=user.id, page=page, limit=limit)
    return Envelope(
        data=PostPage(
            posts=[PostOut.model_validate(post) for post in posts],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.put("/{user_id}", response_model=Envelope[UserOut])
def update_profile(
    user_id: str,
    payload: ProfileUpdate,
    db: SessionDep,
    claims: TokenClaimsDep,
    current_user: CurrentUserDep,
) -> Envelope[UserOut]:
    """Edit a profile. Owners edit their own; ``manage_users`` holders edit anyone's."""
    if user_id != current_user.id:
        authorize(claims, current_user, Capability.MANAGE_USERS)
    target = user_service.require_user(db, user_id)
    interests = (
        [interest.value for interest in payload.interests]
        if payload.interests is not None
        else None
    )
    target = user_service.update_profile(
        db, target, full_name=payload.full_name, bio=payload.bio, interests=interests
    )
    return Envelope(message="Profile updated successfully", data=UserOut.model_validate(target))


@router.post("/{user_id}/follow", response_model=Envelope[FollowOut])
def follow_user(
    user_id: str,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.FOLLOW))],
) -> Envelope[FollowOut]:
    counts = follows.follow(db, current_user.id, user_id)
    return Envelope(
        message="User followed successfully",
        data=FollowOut(following=counts.following, followers=counts.followers),
    )


@router.delete("/{user_id}/follow", response_model=Envelope[FollowOut])
def unfollow_user(
    user_id: str,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.FOLLOW))],
) -> Envelope[FollowOut]:
    counts = follows.unfollow(db, current_user.id, user_id)
    return Envelope(
        message="User unfollowed successfully",
        data=FollowOut(following=counts.following, followers=counts.followers),
    )


@router.get("/{user_id}/followers", response_model=Envelope[FollowerPage])
def list_followers(
    user_id: str,
    db: SessionDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Envelope[FollowerPage]:
    user = _visible_user(db, user_id)
    users, total = follows.list_followers(db, user.id, page=page, limit=limit)
    return Envelope(
        data=FollowerPage(
            followers=[PublicUserOut.model_validate(follower) for follower in users],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.get("/{user_id}/following", response_model=Envelope[FollowingPage])
def list_following(
    user_id: str,
    db: SessionDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Envelope[FollowingPage]:
    user = _visible_user(db, user_id)
    users, total = follows.list_following(db, user.id, page=page, limit=limit)
    return Envelope(
        data=FollowingPage(
            following=[PublicUserOut.model_validate(followee) for followee in users],
            pagination=Pagination.build(page, limit, total),
        )
    )
