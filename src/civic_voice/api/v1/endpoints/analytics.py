"""Analytics endpoints for admins."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from civic_voice.api.v1.dependencies import SessionDep, require_capability
from civic_voice.core.permissions import Capability
from civic_voice.models import User
from civic_voice.schemas.analytics import (
    ContentPerformanceOut,
    DailyCount,
    LeaderboardEntry,
    UserGrowthOut,
)
from civic_voice.schemas.common import Envelope
from civic_voice.services import analytics

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
)

AnalystDep = Annotated[User, Depends(require_capability(Capability.VIEW_ANALYTICS))]
PeriodQuery = Annotated[str, Query(pattern="^(1d|7d|30d|90d|1y)$")]


@router.get("/users/growth", response_model=Envelope[UserGrowthOut])
def user_growth(
    db: SessionDep, _: AnalystDep, period: PeriodQuery = analytics.DEFAULT_PERIOD
) -> Envelope[UserGrowthOut]:
    """New registrations per UTC day."""
    start, _end = analytics.period_window(period)
    growth = [DailyCount.model_validate(row) for row in analytics.user_growth(db, start)]
    return Envelope(data=UserGrowthOut(period=period, growth=growth))


@router.get("/content/performance", response_model=Envelope[ContentPerformanceOut])
def content_performance(
    db: SessionDep, _: AnalystDep, period: PeriodQuery = analytics.DEFAULT_PERIOD
) -> Envelope[ContentPerformanceOut]:
    start, _end = analytics.period_window(period)
    performance = analytics.content_performance(db, start)
    return Envelope(data=ContentPerformanceOut.model_validate({"period": period, **performance}))


@router.get("/leaderboard", response_model=Envelope[list[LeaderboardEntry]])
def leaderboard(
    db: SessionDep,
    _: AnalystDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> Envelope[list[LeaderboardEntry]]:
    """Authors ranked by likes plus comments received."""
    entries = analytics.leaderboard(db, limit=limit)
    return Envelope(data=[LeaderboardEntry.model_validate(entry) for entry in entries])
