"""Government performance ratings submitted by users."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from civic_voice.db.session import Base
from civic_voice.db.time import utcnow


class RatingCategory(StrEnum):
    ECONOMY = "economy"
    EDUCATION = "education"
    HEALTHCARE = "healthcare"
    INFRASTRUCTURE = "infrastructure"
    SECURITY = "security"
    ENVIRONMENT = "environment"
    GOVERNANCE = "governance"
    SOCIAL_WELFARE = "social_welfare"
    ENERGY = "energy"
    FOOD_SECURITY = "food_security"


class GovernmentRating(Base):
    """One score in [0, 5] for a category. Independent of post and user counters."""

    __tablename__ = "government_rating"
    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_government_rating_user_category"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
