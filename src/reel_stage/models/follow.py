"""Model for the user-to-user follow edge."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reel_stage.db.session import Base
from reel_stage.db.time import utcnow


class Follow(Base):
    """``follower_uid`` follows ``followed_uid``; at most one row per pair."""

    __tablename__ = "followers"
    __table_args__ = (
        UniqueConstraint("follower_uid", "followed_uid", name="uq_followers_pair"),
        Index("ix_followers_followed_uid", "followed_uid"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )
    followed_uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
    )
    followed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
