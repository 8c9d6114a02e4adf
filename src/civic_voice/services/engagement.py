"""Engagement ledger: posts, like sets, comments and the counters derived from them.

Like-set membership is the source of truth. ``Post.like_count``,
``Post.comment_count``, ``User.total_posts`` and ``User.total_votes`` are
caches that change only through atomic ``col = col + :delta`` updates issued in
the same transaction as the row change they mirror.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_voice.core.errors import (
    AlreadyLiked,
    EmptyText,
    NotLiked,
    PostNotFound,
    SelfLikeNotAllowed,
    ValidationFailed,
)
from civic_voice.core.settings import settings
from civic_voice.db.errors import is_unique_violation
from civic_voice.models import Post, PostCategory, PostComment, PostLike, PostReport, User
from civic_voice.services import user_service

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 2000
MAX_COMMENT_LENGTH = 500

SORTABLE_FIELDS = {
    "createdAt": Post.created_at,
    "likeCount": Post.like_count,
    "commentCount": Post.comment_count,
}


@dataclass(frozen=True)
class EngagementSummary:
    like_count: int
    comment_count: int


def _clean_text(text: str, *, limit: int) -> str:
    cleaned = text.strip()
    if not cleaned:
        raise EmptyText()
    if len(cleaned) > limit:
        raise ValidationFailed(f"Text must be at most {limit} characters")
    return cleaned


def get_post(db: Session, post_id: int, *, include_hidden: bool = False) -> Post:
    """Return a post or raise ``PostNotFound``."""
    post = db.get(Post, post_id)
    if post is None or (not include_hidden and not post.is_public):
        raise PostNotFound()
    return post


def count_likes(db: Session, post_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
    ) or 0


def count_comments(db: Session, post_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(PostComment).where(PostComment.post_id == post_id)
    ) or 0


def _post_exists(db: Session, post_id: int) -> bool:
    return bool(db.scalar(select(func.count()).select_from(Post).where(Post.id == post_id)))


def _bump_post(db: Session, post_id: int, *, likes: int = 0, comments: int = 0) -> int:
    """Shift the post's cached counts; returns 0 when the post row is gone."""
    result = db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(
            like_count=Post.like_count + likes,
            comment_count=Post.comment_count + comments,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def create_post(
    db: Session,
    author: User,
    *,
    content: str,
    category: PostCategory = PostCategory.GENERAL,
) -> Post:
    """Publish a post and credit the author's ``total_posts``."""
    post = Post(
        author_id=author.id,
        content=_clean_text(content, limit=MAX_POST_LENGTH),
        category=PostCategory(category).value,
    )
    db.add(post)
    db.flush()
    user_service.update_counters(db, author.id, posts=1)
    db.commit()
    db.refresh(post)
    logger.info("User %s created post %s", author.id, post.id)
    return post


def update_post(
    db: Session,
    post: Post,
    *,
    content: str | None = None,
    category: PostCategory | None = None,
) -> Post:
    if content is not None:
        post.content = _clean_text(content, limit=MAX_POST_LENGTH)
    if category is not None:
        post.category = PostCategory(category).value
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post: Post) -> None:
    """Remove a post with everything it owns and roll back the author's counters.

    The like rows are deleted first and the author's ``total_votes`` drops by
    the number of rows that delete removed, all in one write transaction, so a
    like committed while the delete is in flight is either removed and
    subtracted or rejected with ``PostNotFound``.
    """
    author_id = post.author_id
    post_id = post.id
    # Lock the post row so concurrent like inserts wait for this transaction.
    db.execute(select(Post.id).where(Post.id == post_id).with_for_update())
    likes = db.execute(delete(PostLike).where(PostLike.post_id == post_id)).rowcount
    db.execute(delete(PostComment).where(PostComment.post_id == post_id))
    db.execute(delete(PostReport).where(PostReport.post_id == post_id))
    db.execute(delete(Post).where(Post.id == post_id))
    user_service.update_counters(db, author_id, posts=-1, votes=-likes)
    db.commit()
    logger.info("Post %s deleted; author %s loses %d likes", post_id, author_id, likes)


def like(db: Session, post_id: int, user_id: str) -> int:
    """Add ``user_id`` to the post's like set and return the new like count.

    A second like from the same user is rejected with ``AlreadyLiked`` rather
    than ignored. Concurrent duplicates are settled by the ``post_like``
    primary key: exactly one insert succeeds and the others see a unique
    violation, so counters move by exactly one.
    """
    post = get_post(db, post_id)
    author_id = post.author_id
    if not settings.allow_self_like and author_id == user_id:
        raise SelfLikeNotAllowed()

    if has_liked(db, post_id, user_id):
        raise AlreadyLiked()

    db.add(PostLike(post_id=post_id, user_id=user_id))
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise AlreadyLiked() from exc
        if not _post_exists(db, post_id):
            raise PostNotFound() from exc
        raise

    if not _bump_post(db, post_id, likes=1):
        # The post was deleted after it was read above.
        db.rollback()
        raise PostNotFound()
    user_service.update_counters(db, author_id, votes=1)
    like_count = count_likes(db, post_id)
    db.commit()
    logger.debug("User %s liked post %s", user_id, post_id)
    return like_count


def unlike(db: Session, post_id: int, user_id: str) -> int:
    """Remove ``user_id`` from the post's like set and return the new like count.

    The delete reports how many rows it removed, so among concurrent unlikes
    only one observes a row and decrements the counters; the rest get
    ``NotLiked``.
    """
    post = get_post(db, post_id)
    author_id = post.author_id

    result = db.execute(
        delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotLiked()

    if not _bump_post(db, post_id, likes=-1):
        db.rollback()
        raise PostNotFound()
    user_service.update_counters(db, author_id, votes=-1)
    like_count = count_likes(db, post_id)
    db.commit()
    logger.debug("User %s unliked post %s", user_id, post_id)
    return like_count


def has_liked(db: Session, post_id: int, user_id: str) -> bool:
    found = db.scalar(
        select(func.count())
        .select_from(PostLike)
        .where(PostLike.post_id == post_id, PostLike.user_id == user_id)
    )
    return bool(found)


def add_comment(db: Session, post_id: int, user_id: str, text: str) -> PostComment:
    """Append a comment. Does not touch ``total_votes``."""
    content = _clean_text(text, limit=MAX_COMMENT_LENGTH)
    get_post(db, post_id)
    comment = PostComment(post_id=post_id, author_id=user_id, content=content)
    db.add(comment)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if not _post_exists(db, post_id):
            raise PostNotFound() from exc
        raise
    if not _bump_post(db, post_id, comments=1):
        db.rollback()
        raise PostNotFound()
    db.commit()
    db.refresh(comment)
    return comment


def engagement_summary(db: Session, post_id: int) -> EngagementSummary:
    """Like and comment counts computed from the live rows, not the cached columns."""
    get_post(db, post_id, include_hidden=True)
    return EngagementSummary(
        like_count=count_likes(db, post_id),
        comment_count=count_comments(db, post_id),
    )


def list_posts(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    category: PostCategory | None = None,
    author_id: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> tuple[Sequence[Post], int]:
    """Return one page of public posts plus the total matching count."""
    conditions = [Post.is_public.is_(True)]
    if category is not None:
        conditions.append(Post.category == PostCategory(category).value)
    if author_id is not None:
        conditions.append(Post.author_id == author_id)

    column = SORTABLE_FIELDS.get(sort_by, Post.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()
    limit = max(1, min(limit, settings.max_page_size))
    offset = (max(page, 1) - 1) * limit

    total = db.scalar(select(func.count()).select_from(Post).where(*conditions)) or 0
    posts = db.scalars(
        select(Post).where(*conditions).order_by(ordering, Post.id.desc()).offset(offset).limit(limit)
    ).all()
    return posts, total


def list_comments(
    db: Session, post_id: int, *, page: int = 1, limit: int = 20
) -> tuple[Sequence[PostComment], int]:
    """Return a page of a post's comments, newest first."""
    get_post(db, post_id)
    limit = max(1, min(limit, settings.max_page_size))
    offset = (max(page, 1) - 1) * limit
    total = count_comments(db, post_id)
    comments = db.scalars(
        select(PostComment)
        .where(PostComment.post_id == post_id)
        .order_by(PostComment.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()
    return comments, total
