# src/reel_stage/schemas/counters.py
"""Schemas for the cached global counters."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CounterSnapshot(BaseModel):
    """Point-in-time copy of the ``system_counters`` row."""

    users: int
    videos: int
    comments: int
    replies: int
    upvotes: int
    downvotes: int
    views: int
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    def counts(self) -> dict[str, int]:
        """Return the counts without the reconciliation timestamp."""
        return self.model_dump(exclude={"updated_at"})
