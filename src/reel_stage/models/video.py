# src/reel_stage/models/video.py
"""SQLAlchemy models for staged uploads and published videos."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reel_stage.db.session import Base
from reel_stage.db.time import utcnow

VIDEO_ID_LENGTH = 64


class StagedVideo(Base):
    """Upload slot handed to a client before its asset parts are confirmed.

    The row is removed when the upload is acknowledged (and re-created as a
    :class:`Video` in the same transaction) or when the stale-upload sweep
    discards it.
    """

    __tablename__ = "video_on_upload"
    __table_args__ = (Index("ix_video_on_upload_created_at", "created_at"),)

    video_id: Mapped[str] = mapped_column(String(VIDEO_ID_LENGTH), primary_key=True)
    owner_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )

    # Object keys the presigned write locations point at.
    video_path: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail_path: Mapped[str] = mapped_column(Text, nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Video(Base):
    """Published, world-visible video with live engagement counters.

    Counters are mutated only by the reaction service (SQL-side increments)
    and by the counter reconciler.
    """

    __tablename__ = "videos"
    __table_args__ = (Index("ix_videos_owner_uid", "owner_uid"),)

    video_id: Mapped[str] = mapped_column(String(VIDEO_ID_LENGTH), primary_key=True)
    owner_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )

    video_path: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail_path: Mapped[str] = mapped_column(Text, nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
