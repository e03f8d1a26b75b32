# src/reel_stage/models/system_counters.py
"""System-level bookkeeping models."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from reel_stage.db.session import Base
from reel_stage.db.time import utcnow

SYSTEM_COUNTERS_ROW_ID = 1


class SystemCounters(Base):
    """Cached global entity counts.

    A materialized cache: ordinary traffic bumps it best-effort, and only
    ``CounterService.reconcile`` re-establishes equality with the source tables.
    """

    __tablename__ = "system_counters"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, default=SYSTEM_COUNTERS_ROW_ID)
    users_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    videos_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    comments_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    replies_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    upvotes_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    downvotes_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    views_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
