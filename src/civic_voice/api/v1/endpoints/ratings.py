"""Government rating endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from civic_voice.api.v1.dependencies import SessionDep, require_capability
from civic_voice.core.permissions import Capability
from civic_voice.models import User
from civic_voice.schemas.common import Envelope
from civic_voice.schemas.rating import CategorySummaryOut, RatingCreate, RatingOut
from civic_voice.services import ratings

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("", response_model=Envelope[RatingOut])
def submit_rating(
    payload: RatingCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_capability(Capability.RATE))],
) -> Envelope[RatingOut]:
    """Record the caller's score for a category, replacing any earlier one."""
    rating = ratings.submit_rating(
        db, current_user.id, payload.category, payload.score, payload.comment
    )
    return Envelope(message="Rating submitted successfully", data=RatingOut.model_validate(rating))


@router.get("", response_model=Envelope[list[CategorySummaryOut]])
def rating_summary(db: SessionDep) -> Envelope[list[CategorySummaryOut]]:
    summaries = ratings.rating_summary(db)
    return Envelope(
        data=[
            CategorySummaryOut(
                category=summary.category,
                average=summary.average,
                count=summary.count,
                last_updated=summary.last_updated,
            )
            for summary in summaries
        ]
    )
