"""Post-related endpoints for the Civic Voice API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from civic_voice.api.v1.dependencies import (
    CurrentUserDep,
    OptionalUserDep,
    SessionDep,
    TokenClaimsDep,
    authorize,
    require_capability,
)
from civic_voice.core.permissions import Capability
from civic_voice.core.security import TokenClaims
from civic_voice.core.settings import settings
from civic_voice.models import Post, PostCategory, User
from civic_voice.schemas.common import Envelope, Pagination
from civic_voice.schemas.post import (
    CommentCreate,
    CommentOut,
    CommentPage,
    EngagementOut,
    LikeOut,
    PostCreate,
    PostDetail,
    PostOut,
    PostPage,
    PostUpdate,
    ReportCreate,
    ReportOut,
)
from civic_voice.services import ModerationService, engagement

router = APIRouter(prefix="/posts", tags=["posts"])

PageQuery = Annotated[int, Query(ge=1)]
LimitQuery = Annotated[int, Query(ge=1, le=settings.max_page_size)]


def _owned_or_moderated(db: Session, post_id: int, claims: TokenClaims, user: User) -> Post:
    """Load a post the caller may change: their own, or any post for moderators."""
    post = engagement.get_post(db, post_id, include_hidden=True)
    if post.author_id != user.id:
        authorize(claims, user, Capability.MODERATE_CONTENT)
    return post


@router.get("", response_model=Envelope[PostPage])
def list_posts(
    db: SessionDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
    category: PostCategory | None = None,
    sort_by: Annotated[
        str, Query(alias="sortBy", pattern="^(createdAt|likeCount|commentCount)$")
    ] = "createdAt",
    sort_order: Annotated[str, Query(alias="sortOrder", pattern="^(asc|desc)$")] = "desc",
) -> Envelope[PostPage]:
    """List public posts, newest first unless another sort is requested."""
    posts, total = engagement.list_posts(
        db,
        page=page,
        limit=limit,
        category=category,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return Envelope(
        data=PostPage(
            posts=[PostOut.model_validate(post) for post in posts],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.post("", response_model=Envelope[PostOut], status_code=status.HTTP_201_CREATED)
def create_post(
    payload: PostCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.CREATE_POSTS))],
) -> Envelope[PostOut]:
    post = engagement.create_post(
        db, current_user, content=payload.content, category=payload.category
    )
    return Envelope(message="Post created successfully", data=PostOut.model_validate(post))


@router.get("/{post_id}", response_model=Envelope[PostDetail])
def get_post(post_id: int, db: SessionDep, viewer: OptionalUserDep) -> Envelope[PostDetail]:
    """Return a public post with its comments in insertion order."""
    post = engagement.get_post(db, post_id)
    detail = PostDetail.model_validate(post)
    if viewer is not None:
        detail.liked_by_me = engagement.has_liked(db, post_id, viewer.id)
    return Envelope(data=detail)


@router.put("/{post_id}", response_model=Envelope[PostOut])
def update_post(
    post_id: int,
    payload: PostUpdate,
    db: SessionDep,
    claims: TokenClaimsDep,
    current_user: CurrentUserDep,
) -> Envelope[PostOut]:
    post = _owned_or_moderated(db, post_id, claims, current_user)
    post = engagement.update_post(
        db, post, content=payload.content, category=payload.category
    )
    return Envelope(message="Post updated successfully", data=PostOut.model_validate(post))


@router.delete("/{post_id}", response_model=Envelope[None])
def delete_post(
    post_id: int,
    db: SessionDep,
    claims: TokenClaimsDep,
    current_user: CurrentUserDep,
) -> Envelope[None]:
    """Delete a post with its likes, comments and reports."""
    post = _owned_or_moderated(db, post_id, claims, current_user)
    engagement.delete_post(db, post)
    return Envelope(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=Envelope[LikeOut])
def like_post(
    post_id: int,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.LIKE))],
) -> Envelope[LikeOut]:
    like_count = engagement.like(db, post_id, current_user.id)
    return Envelope(message="Post liked", data=LikeOut(like_count=like_count, liked=True))


@router.delete("/{post_id}/like", response_model=Envelope[LikeOut])
def unlike_post(
    post_id: int,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.LIKE))],
) -> Envelope[LikeOut]:
    like_count = engagement.unlike(db, post_id, current_user.id)
    return Envelope(message="Post unliked", data=LikeOut(like_count=like_count, liked=False))


@router.get("/{post_id}/engagement", response_model=Envelope[EngagementOut])
def get_engagement(post_id: int, db: SessionDep) -> Envelope[EngagementOut]:
    """Like and comment counts recomputed from the underlying rows."""
    summary = engagement.engagement_summary(db, post_id)
    return Envelope(
        data=EngagementOut(like_count=summary.like_count, comment_count=summary.comment_count)
    )


@router.post(
    "/{post_id}/comments",
    response_model=Envelope[CommentOut],
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    post_id: int,
    payload: CommentCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.COMMENT))],
) -> Envelope[CommentOut]:
    comment = engagement.add_comment(db, post_id, current_user.id, payload.content)
    return Envelope(message="Comment added successfully", data=CommentOut.model_validate(comment))


@router.get("/{post_id}/comments", response_model=Envelope[CommentPage])
def list_comments(
    post_id: int,
    db: SessionDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Envelope[CommentPage]:
    """Page through a post's comments, newest first."""
    comments, total = engagement.list_comments(db, post_id, page=page, limit=limit)
    return Envelope(
        data=CommentPage(
            comments=[CommentOut.model_validate(comment) for comment in comments],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.post(
    "/{post_id}/report",
    response_model=Envelope[ReportOut],
    status_code=status.HTTP_201_CREATED,
)
def report_post(
    post_id: int,
    payload: ReportCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.REPORT))],
) -> Envelope[ReportOut]:
    report = ModerationService.report_post(
        db, post_id, current_user, payload.reason, payload.description
    )
    return Envelope(message="Post reported successfully", data=ReportOut.model_validate(report))
