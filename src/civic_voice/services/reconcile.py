"""Recompute cached counters from the rows they summarize."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from civic_voice.models import Post, PostComment, PostLike, User, UserFollow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Drift:
    """One cached value that disagrees with its recomputation."""

    entity: str
    entity_id: str
    field: str
    cached: int
    actual: int


@dataclass
class ReconcileReport:
    drifts: list[Drift] = field(default_factory=list)
    repaired: bool = False

    @property
    def clean(self) -> bool:
        return not self.drifts


def _grouped_counts(db: Session, column, *joins) -> dict:
    query = select(column, func.count())
    for target, onclause in joins:
        query = query.join(target, onclause)
    return dict(db.execute(query.group_by(column)).all())


def find_drift(db: Session) -> list[Drift]:
    """Compare every cached counter with a count of the underlying rows."""
    likes_per_post = _grouped_counts(db, PostLike.post_id)
    comments_per_post = _grouped_counts(db, PostComment.post_id)
    posts_per_user = _grouped_counts(db, Post.author_id)
    likes_per_author = _grouped_counts(
        db, Post.author_id, (PostLike, PostLike.post_id == Post.id)
    )
    followers_per_user = _grouped_counts(db, UserFollow.followee_id)
    following_per_user = _grouped_counts(db, UserFollow.follower_id)

    drifts: list[Drift] = []
    for post_id, like_count, comment_count in db.execute(
        select(Post.id, Post.like_count, Post.comment_count).order_by(Post.id)
    ):
        if like_count != likes_per_post.get(post_id, 0):
            drifts.append(
                Drift("post", str(post_id), "like_count", like_count, likes_per_post.get(post_id, 0))
            )
        if comment_count != comments_per_post.get(post_id, 0):
            drifts.append(
                Drift(
                    "post",
                    str(post_id),
                    "comment_count",
                    comment_count,
                    comments_per_post.get(post_id, 0),
                )
            )

    user_counters = (
        ("total_posts", posts_per_user),
        ("total_votes", likes_per_author),
        ("follower_count", followers_per_user),
        ("following_count", following_per_user),
    )
    for row in db.execute(
        select(
            User.id,
            User.total_posts,
            User.total_votes,
            User.follower_count,
            User.following_count,
        ).order_by(User.id)
    ).mappings():
        for name, actual_counts in user_counters:
            actual = actual_counts.get(row["id"], 0)
            if row[name] != actual:
                drifts.append(Drift("user", row["id"], name, row[name], actual))
    return drifts


def reconcile(db: Session, *, fix: bool = False) -> ReconcileReport:
    """Report counter drift and, with ``fix``, overwrite each cache with its recomputation."""
    report = ReconcileReport(drifts=find_drift(db))
    for drift in report.drifts:
        logger.warning(
            "%s %s has %s=%d but the rows say %d",
            drift.entity,
            drift.entity_id,
            drift.field,
            drift.cached,
            drift.actual,
        )
    if not fix or report.clean:
        return report

    for drift in report.drifts:
        model, key = (Post, int(drift.entity_id)) if drift.entity == "post" else (User, drift.entity_id)
        db.execute(
            update(model)
            .where(model.id == key)
            .values({drift.field: drift.actual})
            .execution_options(synchronize_session=False)
        )
    db.commit()
    report.repaired = True
    logger.info("Repaired %d drifted counters", len(report.drifts))
    return report
