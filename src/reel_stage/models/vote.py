# src/reel_stage/models/vote.py
"""Models capturing reactions on videos: upvotes, downvotes and views."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reel_stage.db.session import Base
from reel_stage.db.time import utcnow


class Upvote(Base):
    """Per-user upvote on a video.

    The unique (actor, video) pair is what arbitrates concurrent votes; the
    reaction service never checks-then-inserts.
    """

    __tablename__ = "upvotes"
    __table_args__ = (
        UniqueConstraint("actor_uid", "video_id", name="uq_upvotes_actor_video"),
        Index("ix_upvotes_video_id", "video_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )
    video_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("videos.video_id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Downvote(Base):
    """Per-user downvote on a video. Mutually exclusive with :class:`Upvote`."""

    __tablename__ = "downvotes"
    __table_args__ = (
        UniqueConstraint("actor_uid", "video_id", name="uq_downvotes_actor_video"),
        Index("ix_downvotes_video_id", "video_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )
    video_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("videos.video_id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class View(Base):
    """One recorded view. Not deduplicated; anonymous viewers have no uid."""

    __tablename__ = "views"
    __table_args__ = (Index("ix_views_video_id", "video_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("videos.video_id", ondelete="CASCADE"),
        nullable=False,
    )
    viewer_uid: Mapped[str | None] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="SET NULL"),
        nullable=True,
    )
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
