"""Admin console endpoints: dashboard, user management and report review."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from civic_voice.api.v1.dependencies import SessionDep, require_capability
from civic_voice.core.permissions import Capability, Role
from civic_voice.core.settings import settings
from civic_voice.models import User
from civic_voice.schemas.admin import (
    AdminUserDetail,
    ModerateRequest,
    RoleUpdate,
    SuspendRequest,
    UserPage,
)
from civic_voice.schemas.analytics import (
    AnalyticsOut,
    ContentAnalytics,
    DashboardOut,
    DashboardStats,
    DateRange,
    RecentActivity,
    UserAnalytics,
)
from civic_voice.schemas.common import Envelope, Pagination
from civic_voice.schemas.post import PostOut, ReportedPostOut, ReportPage
from civic_voice.schemas.user import AdminUserOut
from civic_voice.services import (
    ModerationAction,
    ModerationService,
    analytics,
    engagement,
    user_service,
)

router = APIRouter(prefix="/admin", tags=["admin"])

AnalystDep = Annotated[User, Depends(require_capability(Capability.VIEW_ANALYTICS))]
UserManagerDep = Annotated[User, Depends(require_capability(Capability.MANAGE_USERS))]
ReportViewerDep = Annotated[User, Depends(require_capability(Capability.VIEW_REPORTS))]
ModeratorDep = Annotated[User, Depends(require_capability(Capability.MODERATE_CONTENT))]

PageQuery = Annotated[int, Query(ge=1)]
LimitQuery = Annotated[int, Query(ge=1, le=settings.max_page_size)]
PeriodQuery = Annotated[str, Query(pattern="^(1d|7d|30d|90d|1y)$")]

RECENT_POSTS = 10


@router.get("/dashboard", response_model=Envelope[DashboardOut])
def dashboard(db: SessionDep, _: AnalystDep) -> Envelope[DashboardOut]:
    """Platform totals and the newest users, posts and reports."""
    stats = DashboardStats.model_validate(analytics.dashboard_stats(db))
    activity = RecentActivity.model_validate(analytics.recent_activity(db))
    return Envelope(data=DashboardOut(stats=stats, recent_activity=activity))


@router.get("/analytics", response_model=Envelope[AnalyticsOut])
def platform_analytics(
    db: SessionDep, _: AnalystDep, period: PeriodQuery = analytics.DEFAULT_PERIOD
) -> Envelope[AnalyticsOut]:
    start, end = analytics.period_window(period)
    return Envelope(
        data=AnalyticsOut(
            period=period,
            date_range=DateRange(start_date=start, end_date=end),
            users=UserAnalytics.model_validate(analytics.user_analytics(db, start)),
            posts=ContentAnalytics.model_validate(analytics.content_analytics(db, start)),
        )
    )


@router.get("/users", response_model=Envelope[UserPage])
def list_users(
    db: SessionDep,
    _: UserManagerDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
    search: Annotated[str | None, Query(max_length=100)] = None,
    role: Role | None = None,
    status: Annotated[str | None, Query(pattern="^(active|suspended)$")] = None,
) -> Envelope[UserPage]:
    users, total = user_service.list_users(
        db, search=search, role=role, status=status, page=page, limit=limit
    )
    return Envelope(
        data=UserPage(
            users=[AdminUserOut.model_validate(user) for user in users],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.get("/users/{user_id}", response_model=Envelope[AdminUserDetail])
def get_user(user_id: str, db: SessionDep, _: UserManagerDep) -> Envelope[AdminUserDetail]:
    user = user_service.require_user(db, user_id)
    posts, _total = engagement.list_posts(db, author_id=user.id, limit=RECENT_POSTS)
    return Envelope(
        data=AdminUserDetail(
            user=AdminUserOut.model_validate(user),
            recent_posts=[PostOut.model_validate(post) for post in posts],
        )
    )


@router.put("/users/{user_id}/role", response_model=Envelope[AdminUserOut])
def update_role(
    user_id: str, payload: RoleUpdate, db: SessionDep, admin: UserManagerDep
) -> Envelope[AdminUserOut]:
    """Change a user's role. Existing tokens keep the role they were issued with."""
    target = user_service.require_user(db, user_id)
    target = user_service.set_role(db, admin, target, payload.role)
    return Envelope(
        message="User role updated successfully", data=AdminUserOut.model_validate(target)
    )


@router.put("/users/{user_id}/suspend", response_model=Envelope[AdminUserOut])
def suspend_user(
    user_id: str, payload: SuspendRequest, db: SessionDep, admin: UserManagerDep
) -> Envelope[AdminUserOut]:
    """Deactivate an account; its tokens stop working on the next request."""
    target = user_service.require_user(db, user_id)
    target = user_service.suspend_user(
        db, admin, target, reason=payload.reason, duration_days=payload.duration
    )
    return Envelope(message="User suspended successfully", data=AdminUserOut.model_validate(target))


@router.put("/users/{user_id}/activate", response_model=Envelope[AdminUserOut])
def activate_user(user_id: str, db: SessionDep, _: UserManagerDep) -> Envelope[AdminUserOut]:
    target = user_service.require_user(db, user_id)
    target = user_service.set_active(db, target, True)
    return Envelope(message="User activated successfully", data=AdminUserOut.model_validate(target))


@router.get("/reports", response_model=Envelope[ReportPage])
def list_reports(
    db: SessionDep,
    _: ReportViewerDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Envelope[ReportPage]:
    """Posts carrying the report flag, most recently reported first."""
    posts, total = ModerationService.list_reported_posts(db, page=page, limit=limit)
    return Envelope(
        data=ReportPage(
            reports=[ReportedPostOut.model_validate(post) for post in posts],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.put("/reports/{post_id}/moderate", response_model=Envelope[ReportedPostOut])
def moderate_report(
    post_id: int, payload: ModerateRequest, db: SessionDep, moderator: ModeratorDep
) -> Envelope[ReportedPostOut]:
    post = ModerationService.moderate(db, post_id, moderator, payload.action, payload.notes)
    outcome = "approved" if payload.action is ModerationAction.APPROVE else "rejected"
    return Envelope(
        message=f"Content {outcome} successfully",
        data=ReportedPostOut.model_validate(post),
    )
