"""Moderation services for Civic Voice."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import StrEnum

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_voice.core.errors import AlreadyReported
from civic_voice.core.settings import settings
from civic_voice.db.errors import is_unique_violation
from civic_voice.models import Post, PostReport, ReportReason, User
from civic_voice.services.engagement import get_post

logger = logging.getLogger(__name__)


class ModerationAction(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


class ModerationService:
    """Service handling user reports and moderator decisions."""

    @staticmethod
    def report_post(
        db: Session,
        post_id: int,
        reporter: User,
        reason: ReportReason,
        description: str = "",
    ) -> PostReport:
        """File a report against a post and flag it for review.

        Args:
            db: Database session
            post_id: ID of the reported post
            reporter: User filing the report
            reason: One of the closed report reasons
            description: Optional free-text detail

        Returns:
            The stored report

        Raises:
            PostNotFound: The post does not exist or is hidden
            AlreadyReported: ``reporter`` has already reported this post
        """
        post = get_post(db, post_id)
        if db.get(PostReport, (post_id, reporter.id)) is not None:
            raise AlreadyReported()

        report = PostReport(
            post_id=post_id,
            reporter_id=reporter.id,
            reason=ReportReason(reason).value,
            description=description.strip(),
        )
        db.add(report)
        post.is_reported = True
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if is_unique_violation(exc):
                raise AlreadyReported() from exc
            raise
        db.refresh(report)
        logger.info("User %s reported post %s as %s", reporter.id, post_id, report.reason)
        return report

    @staticmethod
    def list_reported_posts(
        db: Session, *, page: int = 1, limit: int = 20
    ) -> tuple[Sequence[Post], int]:
        """Return flagged posts, most recently reported first.

        Hidden posts stay listed while they carry the report flag so a
        moderator can still find them.
        """
        limit = max(1, min(limit, settings.max_page_size))
        offset = (max(page, 1) - 1) * limit
        latest_report = (
            select(PostReport.post_id, func.max(PostReport.created_at).label("reported_at"))
            .group_by(PostReport.post_id)
            .subquery()
        )
        condition = Post.is_reported.is_(True)
        total = db.scalar(select(func.count()).select_from(Post).where(condition)) or 0
        posts = db.scalars(
            select(Post)
            .outerjoin(latest_report, latest_report.c.post_id == Post.id)
            .where(condition)
            .order_by(latest_report.c.reported_at.desc(), Post.id.desc())
            .offset(offset)
            .limit(limit)
        ).unique().all()
        return posts, total

    @staticmethod
    def moderate(
        db: Session,
        post_id: int,
        moderator: User,
        action: ModerationAction,
        notes: str | None = None,
    ) -> Post:
        """Apply a moderator's decision to a post.

        ``approve`` clears the report flag and keeps the post public;
        ``reject`` hides it from every public listing. Either way the post is
        marked as moderated and the notes are recorded.
        """
        post = get_post(db, post_id, include_hidden=True)
        action = ModerationAction(action)
        post.is_moderated = True
        if action is ModerationAction.APPROVE:
            post.is_reported = False
            post.moderation_notes = notes or "Content approved by moderator"
        else:
            post.is_public = False
            post.moderation_notes = notes or "Content rejected by moderator"
        db.commit()
        db.refresh(post)
        logger.info("Moderator %s applied %s to post %s", moderator.id, action, post_id)
        return post
