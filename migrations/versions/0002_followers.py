"""followers edge and cached follow counters

Revision ID: 0002_followers
Revises: 0001_initial_schema
Create Date: 2026-10-18 15:30:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0002_followers"
down_revision: Union[str, Sequence[str], None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _user_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.String(length=128),
        sa.ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(
            sa.Column("followers", sa.Integer(), nullable=False, server_default="0")
        )
        batch_op.add_column(
            sa.Column("following", sa.Integer(), nullable=False, server_default="0")
        )

    op.create_table(
        "followers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _user_column("follower_uid"),
        _user_column("followed_uid"),
        sa.Column("followed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_uid", "followed_uid", name="uq_followers_pair"),
    )
    op.create_index("ix_followers_followed_uid", "followers", ["followed_uid"])


def downgrade() -> None:
    op.drop_index("ix_followers_followed_uid", table_name="followers")
    op.drop_table("followers")
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("following")
        batch_op.drop_column("followers")
