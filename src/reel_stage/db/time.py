# src/reel_stage/db/time.py
"""Clock helpers shared by models and services.

All timestamps are timezone-aware UTC; SQLite stores them without the offset.
"""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    return datetime.now(UTC)


def utc_cutoff(seconds: float) -> datetime:
    """Return the instant ``seconds`` ago; negative ages clamp to now."""
    return utcnow() - timedelta(seconds=max(0.0, float(seconds)))
