"""Analytics aggregator: read-only rollups over users, posts and engagement.

Every function here only issues SELECTs. A rollup is a sequence of
independent counts, each consistent at the moment it was read, so a single
result may describe a state that never existed exactly while writes are in
flight. Nothing takes a lock that would block writers.

Time buckets are UTC calendar days rendered as ``YYYY-MM-DD`` and returned in
ascending order. Only days that contain at least one event are listed.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from civic_voice.core.errors import ValidationFailed
from civic_voice.core.permissions import Role
from civic_voice.db.time import as_utc, utc_day, utcnow
from civic_voice.models import Post, PostCategory, PostComment, PostLike, PostReport, User

PERIODS: dict[str, timedelta] = {
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
}
DEFAULT_PERIOD = "7d"


def period_window(period: str = DEFAULT_PERIOD, *, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` for a named reporting period ending now."""
    try:
        span = PERIODS[period]
    except KeyError as err:
        raise ValidationFailed(
            f"Unknown period {period!r}; expected one of {', '.join(PERIODS)}"
        ) from err
    end = as_utc(now) if now is not None else utcnow()
    return end - span, end


def _count(db: Session, model: type, *conditions: Any) -> int:
    return db.scalar(select(func.count()).select_from(model).where(*conditions)) or 0


def _grouped(db: Session, column: Any, *conditions: Any) -> dict[str, int]:
    rows = db.execute(select(column, func.count()).where(*conditions).group_by(column)).all()
    return {str(key): count for key, count in rows}


def _daily(timestamps: Iterable[datetime]) -> list[dict[str, Any]]:
    buckets = Counter(utc_day(ts).isoformat() for ts in timestamps)
    return [{"date": day, "count": buckets[day]} for day in sorted(buckets)]


def _users_by_role(db: Session) -> dict[str, int]:
    counts = _grouped(db, User.role)
    return {role.value: counts.get(role.value, 0) for role in Role}


def _posts_by_category(db: Session, *conditions: Any) -> dict[str, int]:
    counts = _grouped(db, Post.category, *conditions)
    return {category.value: counts.get(category.value, 0) for category in PostCategory}


def _live_like_counts(db: Session) -> dict[int, int]:
    rows = db.execute(
        select(PostLike.post_id, func.count()).group_by(PostLike.post_id)
    ).all()
    return dict(rows)


def _live_comment_counts(db: Session) -> dict[int, int]:
    rows = db.execute(
        select(PostComment.post_id, func.count()).group_by(PostComment.post_id)
    ).all()
    return dict(rows)


def dashboard_stats(db: Session) -> dict[str, Any]:
    """Platform-wide totals for the admin dashboard."""
    return {
        "total_users": _count(db, User),
        "total_posts": _count(db, Post),
        "total_active_users": _count(db, User, User.is_active.is_(True)),
        "users_by_role": _users_by_role(db),
        "posts_by_category": _posts_by_category(db),
        "reported_content": _count(db, Post, Post.is_reported.is_(True)),
    }


def recent_activity(db: Session, *, limit: int = 5) -> dict[str, list[Any]]:
    """Newest users, posts and reports."""
    users = db.scalars(
        select(User).order_by(User.created_at.desc(), User.id).limit(limit)
    ).all()
    posts = db.scalars(
        select(Post).order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)
    ).all()
    reports = db.scalars(
        select(PostReport).order_by(PostReport.created_at.desc()).limit(limit)
    ).all()
    return {"users": list(users), "posts": list(posts), "reports": list(reports)}


def user_analytics(db: Session, start: datetime) -> dict[str, Any]:
    """User totals plus new-user growth per UTC day since ``start``."""
    created = db.scalars(select(User.created_at).where(User.created_at >= start)).all()
    return {
        "total": _count(db, User),
        "verified": _count(db, User, User.is_verified.is_(True)),
        "active": _count(db, User, User.last_active_at >= start),
        "suspended": _count(db, User, User.is_active.is_(False)),
        "new": len(created),
        "by_role": _users_by_role(db),
        "growth_over_time": _daily(created),
    }


def daily_activity(db: Session, start: datetime) -> list[dict[str, Any]]:
    """Posts created per UTC day since ``start`` with the engagement they collected."""
    likes = _live_like_counts(db)
    comments = _live_comment_counts(db)
    rows = db.execute(select(Post.id, Post.created_at).where(Post.created_at >= start)).all()

    days: dict[str, dict[str, Any]] = {}
    for post_id, created_at in rows:
        day = utc_day(created_at).isoformat()
        bucket = days.setdefault(day, {"date": day, "posts": 0, "likes": 0, "comments": 0})
        bucket["posts"] += 1
        bucket["likes"] += likes.get(post_id, 0)
        bucket["comments"] += comments.get(post_id, 0)
    return [days[day] for day in sorted(days)]


def content_analytics(db: Session, start: datetime) -> dict[str, Any]:
    """Post totals and engagement for posts created since ``start``."""
    window = (Post.created_at >= start,)
    new_posts = _count(db, Post, *window)
    total_likes = db.scalar(
        select(func.count()).select_from(PostLike).join(Post, Post.id == PostLike.post_id).where(*window)
    ) or 0
    total_comments = db.scalar(
        select(func.count())
        .select_from(PostComment)
        .join(Post, Post.id == PostComment.post_id)
        .where(*window)
    ) or 0
    return {
        "total_posts": _count(db, Post),
        "new_posts": new_posts,
        "reported_posts": _count(db, Post, Post.is_reported.is_(True)),
        "total_likes": total_likes,
        "total_comments": total_comments,
        "average_likes": round(total_likes / new_posts, 2) if new_posts else 0.0,
        "average_comments": round(total_comments / new_posts, 2) if new_posts else 0.0,
        "by_category": _posts_by_category(db, *window),
        "daily_activity": daily_activity(db, start),
    }


def leaderboard(db: Session, *, limit: int = 10) -> list[dict[str, Any]]:
    """Authors ranked by likes plus comments received on their posts."""
    likes = _live_like_counts(db)
    comments = _live_comment_counts(db)
    per_author: dict[str, dict[str, int]] = {}
    for post_id, author_id in db.execute(select(Post.id, Post.author_id)).all():
        entry = per_author.setdefault(author_id, {"posts": 0, "likes": 0, "comments": 0})
        entry["posts"] += 1
        entry["likes"] += likes.get(post_id, 0)
        entry["comments"] += comments.get(post_id, 0)
    if not per_author:
        return []

    users = {
        user.id: user
        for user in db.scalars(select(User).where(User.id.in_(per_author))).all()
    }
    ranked = sorted(
        per_author.items(),
        key=lambda item: (-(item[1]["likes"] + item[1]["comments"]), users[item[0]].username),
    )
    return [
        {
            "user_id": author_id,
            "username": users[author_id].username,
            "full_name": users[author_id].full_name,
            "total_posts": entry["posts"],
            "total_likes": entry["likes"],
            "total_comments": entry["comments"],
            "engagement": entry["likes"] + entry["comments"],
        }
        for author_id, entry in ranked[:limit]
    ]


def content_performance(db: Session, start: datetime, *, limit: int = 10) -> dict[str, Any]:
    """Top posts, per-category performance and daily engagement since ``start``."""
    likes = _live_like_counts(db)
    comments = _live_comment_counts(db)
    posts = db.scalars(select(Post).where(Post.created_at >= start)).all()

    def engagement(post: Post) -> int:
        return likes.get(post.id, 0) + comments.get(post.id, 0)

    top_posts = sorted(posts, key=lambda post: (-engagement(post), -post.id))[:limit]

    categories: dict[str, dict[str, Any]] = {}
    for post in posts:
        entry = categories.setdefault(
            post.category, {"category": post.category, "posts": 0, "likes": 0, "comments": 0}
        )
        entry["posts"] += 1
        entry["likes"] += likes.get(post.id, 0)
        entry["comments"] += comments.get(post.id, 0)
    for entry in categories.values():
        entry["average_likes"] = round(entry["likes"] / entry["posts"], 2)
        entry["average_comments"] = round(entry["comments"] / entry["posts"], 2)

    return {
        "top_posts": [
            {
                "post": post,
                "like_count": likes.get(post.id, 0),
                "comment_count": comments.get(post.id, 0),
            }
            for post in top_posts
        ],
        "category_performance": sorted(
            categories.values(), key=lambda entry: (-entry["posts"], entry["category"])
        ),
        "engagement_trends": daily_activity(db, start),
    }


def user_growth(db: Session, start: datetime) -> list[dict[str, Any]]:
    """New registrations per UTC day since ``start``."""
    created = db.scalars(select(User.created_at).where(User.created_at >= start)).all()
    return _daily(created)
