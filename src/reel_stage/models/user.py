# src/reel_stage/models/user.py
"""SQLAlchemy model for user accounts that own and react to videos."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reel_stage.db.session import Base
from reel_stage.db.time import utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    """Account row keyed by the identity provider's uid.

    Registration and credentials live outside this service; the row anchors
    ownership and carries the cached video and follow counters.
    """

    __tablename__ = "users"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_USER)

    # Cached; repaired by CounterService.reconcile_user.
    total_videos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    followers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
