"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False)


def _asset_columns() -> list[sa.Column]:
    return [
        sa.Column("video_path", sa.Text(), nullable=False),
        sa.Column("thumbnail_path", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
    ]


def _owner_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.String(length=128),
        sa.ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )


def _video_column() -> sa.Column:
    return sa.Column(
        "video_id",
        sa.String(length=64),
        sa.ForeignKey("videos.video_id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create users, staged and published videos, reactions and counters."""
    op.create_table(
        "users",
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("total_videos", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("uid"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "video_on_upload",
        sa.Column("video_id", sa.String(length=64), nullable=False),
        _owner_column("owner_uid"),
        *_asset_columns(),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("video_id"),
    )
    op.create_index("ix_video_on_upload_created_at", "video_on_upload", ["created_at"])

    op.create_table(
        "videos",
        sa.Column("video_id", sa.String(length=64), nullable=False),
        _owner_column("owner_uid"),
        *_asset_columns(),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("upvote_count", sa.Integer(), nullable=False),
        sa.Column("downvote_count", sa.Integer(), nullable=False),
        sa.Column("comment_count", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("video_id"),
    )
    op.create_index("ix_videos_owner_uid", "videos", ["owner_uid"])

    for table in ("upvotes", "downvotes"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            _owner_column("actor_uid"),
            _video_column(),
            _timestamp("created_at"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("actor_uid", "video_id", name=f"uq_{table}_actor_video"),
        )
        op.create_index(f"ix_{table}_video_id", table, ["video_id"])

    op.create_table(
        "views",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _video_column(),
        sa.Column(
            "viewer_uid",
            sa.String(length=128),
            sa.ForeignKey("users.uid", ondelete="SET NULL"),
            nullable=True,
        ),
        _timestamp("viewed_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_views_video_id", "views", ["video_id"])

    op.create_table(
        "comments",
        sa.Column("comment_id", sa.String(length=64), nullable=False),
        _video_column(),
        _owner_column("author_uid"),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("reply_count", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("comment_id"),
    )
    op.create_index("ix_comments_video_id", "comments", ["video_id"])

    op.create_table(
        "replies",
        sa.Column("reply_id", sa.String(length=64), nullable=False),
        sa.Column(
            "comment_id",
            sa.String(length=64),
            sa.ForeignKey("comments.comment_id", ondelete="CASCADE"),
            nullable=False,
        ),
        _owner_column("author_uid"),
        sa.Column("body", sa.Text(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("reply_id"),
        sa.UniqueConstraint("author_uid", "comment_id", name="uq_replies_author_comment"),
    )
    op.create_index("ix_replies_comment_id", "replies", ["comment_id"])

    op.create_table(
        "system_counters",
        sa.Column("id", sa.BigInteger(), nullable=False),
        *[
            sa.Column(f"{name}_count", sa.BigInteger(), nullable=False, server_default="0")
            for name in ("users", "videos", "comments", "replies", "upvotes", "downvotes", "views")
        ],
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_table("system_counters")
    op.drop_index("ix_replies_comment_id", table_name="replies")
    op.drop_table("replies")
    op.drop_index("ix_comments_video_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_views_video_id", table_name="views")
    op.drop_table("views")
    for table in ("downvotes", "upvotes"):
        op.drop_index(f"ix_{table}_video_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_videos_owner_uid", table_name="videos")
    op.drop_table("videos")
    op.drop_index("ix_video_on_upload_created_at", table_name="video_on_upload")
    op.drop_table("video_on_upload")
    op.drop_table("users")
