"""Populate the database with demo accounts and posts.

Running it again first clears every account, post and rating, so the result
is always the same data set. Posts, likes, comments and follows go through
the services so the cached counters come out consistent.
"""
from __future__ import annotations

import argparse
from dataclasses import dataclass

from sqlalchemy import delete
from sqlalchemy.orm import Session

from civic_voice.core.permissions import Role
from civic_voice.db.session import SessionLocal, create_tables
from civic_voice.models import (
    GovernmentRating,
    Post,
    PostCategory,
    PostComment,
    PostLike,
    PostReport,
    User,
    UserFollow,
)
from civic_voice.services import engagement, follows, user_service


@dataclass(frozen=True)
class DemoAccount:
    email: str
    password: str
    full_name: str
    username: str
    bio: str
    role: Role
    is_verified: bool
    interests: tuple[str, ...]


ADMIN = DemoAccount(
    email="admin@civicvoice.com",
    password="admin123",
    full_name="Admin User",
    username="admin",
    bio="System Administrator",
    role=Role.ADMIN,
    is_verified=True,
    interests=("Politics", "Education", "Healthcare"),
)

DEMO_ACCOUNTS = (
    ADMIN,
    DemoAccount(
        email="john.doe@example.com",
        password="password123",
        full_name="John Doe",
        username="johndoe",
        bio="Political enthusiast and community advocate",
        role=Role.USER,
        is_verified=True,
        interests=("Politics", "Economy"),
    ),
    DemoAccount(
        email="jane.smith@example.com",
        password="password123",
        full_name="Jane Smith",
        username="janesmith",
        bio="Education reform advocate",
        role=Role.USER,
        is_verified=False,
        interests=("Education", "Healthcare"),
    ),
    DemoAccount(
        email="moderator@civicvoice.com",
        password="password123",
        full_name="Content Moderator",
        username="moderator",
        bio="Community moderator",
        role=Role.MODERATOR,
        is_verified=True,
        interests=("Politics", "Education", "Healthcare"),
    ),
)

# (author, content, category, likers, [(commenter, text), ...])
DEMO_POSTS = (
    (
        "johndoe",
        "The new education policy shows promising results in improving student outcomes. "
        "What are your thoughts on the recent changes?",
        PostCategory.EDUCATION,
        ("janesmith", "moderator"),
        (("janesmith", "I agree! The focus on practical learning is much needed."),),
    ),
    (
        "janesmith",
        "Healthcare accessibility in rural areas needs immediate attention. We need better "
        "infrastructure and more healthcare workers.",
        PostCategory.HEALTHCARE,
        ("johndoe",),
        (("johndoe", "Absolutely! Telemedicine could be a game-changer here."),),
    ),
    (
        "admin",
        "Welcome to CivicVoice! This platform is designed to foster meaningful discussions "
        "about important civic issues.",
        PostCategory.GENERAL,
        ("johndoe", "janesmith", "moderator"),
        (
            ("johndoe", "Excited to be part of this community!"),
            ("janesmith", "Great initiative! Looking forward to meaningful discussions."),
        ),
    ),
)

# (follower, followee)
DEMO_FOLLOWS = (
    ("johndoe", "janesmith"),
    ("janesmith", "johndoe"),
    ("johndoe", "admin"),
    ("janesmith", "admin"),
    ("moderator", "admin"),
)


def clear(db: Session) -> None:
    """Delete all rows, children first."""
    for model in (
        PostReport, PostComment, PostLike, Post, GovernmentRating, UserFollow, User,
    ):
        db.execute(delete(model))
    db.commit()


def seed(db: Session) -> dict[str, User]:
    """Clear the store and insert the demo data set. Returns accounts by username."""
    clear(db)
    accounts: dict[str, User] = {}
    for account in DEMO_ACCOUNTS:
        accounts[account.username] = user_service.create_user(
            db,
            email=account.email,
            username=account.username,
            password=account.password,
            full_name=account.full_name,
            bio=account.bio,
            interests=account.interests,
            role=account.role,
            is_verified=account.is_verified,
        )

    for author, content, category, likers, comments in DEMO_POSTS:
        post = engagement.create_post(db, accounts[author], content=content, category=category)
        for liker in likers:
            engagement.like(db, post.id, accounts[liker].id)
        for commenter, text in comments:
            engagement.add_comment(db, post.id, accounts[commenter].id, text)

    for follower, followee in DEMO_FOLLOWS:
        follows.follow(db, accounts[follower].id, accounts[followee].id)
    return accounts


def main() -> None:
    parser = argparse.ArgumentParser(description="Reset the database to the demo data set")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding (for databases not managed by Alembic).",
    )
    args = parser.parse_args()

    if args.create_tables:
        create_tables()
    with SessionLocal() as db:
        accounts = seed(db)
    print(f"[seed] created {len(accounts)} accounts and {len(DEMO_POSTS)} posts")
    print(f"[seed] admin login: {ADMIN.email}")


if __name__ == "__main__":
    main()
