"""Schemas for dashboard and analytics rollups."""
from __future__ import annotations

from datetime import datetime

from civic_voice.schemas.common import CamelModel
from civic_voice.schemas.post import PostOut, ReportOut
from civic_voice.schemas.user import PublicUserOut


class DashboardStats(CamelModel):
    total_users: int
    total_posts: int
    total_active_users: int
    users_by_role: dict[str, int]
    posts_by_category: dict[str, int]
    reported_content: int


class RecentActivity(CamelModel):
    users: list[PublicUserOut]
    posts: list[PostOut]
    reports: list[ReportOut]


class DashboardOut(CamelModel):
    stats: DashboardStats
    recent_activity: RecentActivity


class DailyCount(CamelModel):
    date: str
    count: int


class DailyActivity(CamelModel):
    date: str
    posts: int
    likes: int
    comments: int


class UserAnalytics(CamelModel):
    total: int
    verified: int
    active: int
    suspended: int
    new: int
    by_role: dict[str, int]
    growth_over_time: list[DailyCount]


class ContentAnalytics(CamelModel):
    total_posts: int
    new_posts: int
    reported_posts: int
    total_likes: int
    total_comments: int
    average_likes: float
    average_comments: float
    by_category: dict[str, int]
    daily_activity: list[DailyActivity]


class DateRange(CamelModel):
    start_date: datetime
    end_date: datetime


class AnalyticsOut(CamelModel):
    period: str
    date_range: DateRange
    users: UserAnalytics
    posts: ContentAnalytics


class UserGrowthOut(CamelModel):
    period: str
    growth: list[DailyCount]


class LeaderboardEntry(CamelModel):
    user_id: str
    username: str
    full_name: str
    total_posts: int
    total_likes: int
    total_comments: int
    engagement: int


class TopPost(CamelModel):
    post: PostOut
    like_count: int
    comment_count: int


class CategoryPerformance(CamelModel):
    category: str
    posts: int
    likes: int
    comments: int
    average_likes: float
    average_comments: float


class ContentPerformanceOut(CamelModel):
    period: str
    top_posts: list[TopPost]
    category_performance: list[CategoryPerformance]
    engagement_trends: list[DailyActivity]
