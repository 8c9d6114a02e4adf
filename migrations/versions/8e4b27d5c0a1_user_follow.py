"""user follow graph

Revision ID: 8e4b27d5c0a1
Revises: 3c1f0a9d2b7e
Create Date: 2026-10-19 15:40:03.104937

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8e4b27d5c0a1"
down_revision: Union[str, Sequence[str], None] = "3c1f0a9d2b7e"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add the follow edge table and the cached follow counts on users."""
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(
            sa.Column("follower_count", sa.Integer(), nullable=False, server_default="0")
        )
        batch_op.add_column(
            sa.Column("following_count", sa.Integer(), nullable=False, server_default="0")
        )

    op.create_table(
        "user_follow",
        sa.Column("follower_id", sa.String(length=36), nullable=False),
        sa.Column("followee_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("follower_id <> followee_id", name="ck_user_follow_not_self"),
        sa.ForeignKeyConstraint(["follower_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["followee_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("follower_id", "followee_id"),
    )
    op.create_index("ix_user_follow_followee", "user_follow", ["followee_id", "created_at"])


def downgrade() -> None:
    """Drop the follow table and counts."""
    op.drop_index("ix_user_follow_followee", table_name="user_follow")
    op.drop_table("user_follow")
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("following_count")
        batch_op.drop_column("follower_count")
