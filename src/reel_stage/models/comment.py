# src/reel_stage/models/comment.py
"""SQLAlchemy models for comments on videos and replies to comments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reel_stage.db.session import Base
from reel_stage.db.time import utcnow


class Comment(Base):
    """Top-level comment attached to a published video."""

    __tablename__ = "comments"
    __table_args__ = (Index("ix_comments_video_id", "video_id"),)

    comment_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    video_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("videos.video_id", ondelete="CASCADE"),
        nullable=False,
    )
    author_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    reply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Reply(Base):
    """Reply to a comment.

    A user holds at most one reply per comment; replying again overwrites
    the body in place.
    """

    __tablename__ = "replies"
    __table_args__ = (
        UniqueConstraint("author_uid", "comment_id", name="uq_replies_author_comment"),
        Index("ix_replies_comment_id", "comment_id"),
    )

    reply_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    comment_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("comments.comment_id", ondelete="CASCADE"),
        nullable=False,
    )
    author_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
