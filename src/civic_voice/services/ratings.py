"""Government performance ratings.

Ratings form their own aggregate: submitting one never touches post or user
counters. Each user holds at most one score per category; submitting again
replaces it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_voice.core.errors import InvalidRating
from civic_voice.db.errors import is_unique_violation
from civic_voice.db.time import as_utc, utcnow
from civic_voice.models import GovernmentRating, RatingCategory

logger = logging.getLogger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 5.0


@dataclass(frozen=True)
class CategorySummary:
    category: str
    average: float
    count: int
    last_updated: datetime | None


def _find(db: Session, user_id: str, category: str) -> GovernmentRating | None:
    return db.scalars(
        select(GovernmentRating).where(
            GovernmentRating.user_id == user_id,
            GovernmentRating.category == category,
        )
    ).first()


def submit_rating(
    db: Session,
    user_id: str,
    category: RatingCategory,
    score: float,
    comment: str | None = None,
) -> GovernmentRating:
    """Record or replace ``user_id``'s score for ``category``."""
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidRating()
    category = RatingCategory(category).value

    rating = _find(db, user_id, category)
    if rating is None:
        rating = GovernmentRating(user_id=user_id, category=category, score=score, comment=comment)
        db.add(rating)
    else:
        rating.score = score
        rating.comment = comment
        rating.updated_at = utcnow()
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent first submission for the same category won; overwrite it.
        db.rollback()
        if not is_unique_violation(exc):
            raise
        rating = _find(db, user_id, category)
        rating.score = score
        rating.comment = comment
        rating.updated_at = utcnow()
        db.commit()
    db.refresh(rating)
    logger.debug("User %s rated %s at %.1f", user_id, category, score)
    return rating


def rating_summary(db: Session) -> list[CategorySummary]:
    """Average score, vote count and last update for every category."""
    rows = db.execute(
        select(
            GovernmentRating.category,
            func.avg(GovernmentRating.score),
            func.count(),
            func.max(GovernmentRating.updated_at),
        ).group_by(GovernmentRating.category)
    ).all()
    by_category = {category: (average, count, updated) for category, average, count, updated in rows}

    summaries = []
    for category in RatingCategory:
        average, count, updated = by_category.get(category.value, (None, 0, None))
        summaries.append(
            CategorySummary(
                category=category.value,
                average=round(float(average), 2) if average is not None else 0.0,
                count=count,
                last_updated=as_utc(updated) if updated is not None else None,
            )
        )
    return summaries
