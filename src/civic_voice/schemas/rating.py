"""Government rating schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from civic_voice.models import RatingCategory
from civic_voice.schemas.common import CamelModel


class RatingCreate(CamelModel):
    category: RatingCategory
    # Range is checked by the ratings service, which reports InvalidRating.
    score: float
    comment: str | None = Field(None, max_length=500)


class RatingOut(CamelModel):
    category: str
    score: float
    comment: str | None
    updated_at: datetime


class CategorySummaryOut(CamelModel):
    category: str
    average: float
    count: int
    last_updated: datetime | None
