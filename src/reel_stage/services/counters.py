"""Counter reconciliation.

Two kinds of cached counters exist: the global ``system_counters`` row and
the per-entity columns on videos, comments and users. Ordinary traffic keeps
them approximately right; the operations here recompute them from the source
tables and are the only authoritative repair path.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, sessionmaker

from reel_stage.core.errors import NotFound, NotInitialized, ReelStageError
from reel_stage.db.time import utcnow
from reel_stage.db.transaction import Deadline, insert_if_absent, transaction
from reel_stage.models import (
    Comment,
    Downvote,
    Follow,
    Reply,
    SystemCounters,
    Upvote,
    User,
    Video,
    View,
)
from reel_stage.models.system_counters import SYSTEM_COUNTERS_ROW_ID
from reel_stage.schemas.counters import CounterSnapshot

logger = logging.getLogger(__name__)

# Snapshot field -> source table.
COUNTER_SOURCES: dict[str, Any] = {
    "users": User,
    "videos": Video,
    "comments": Comment,
    "replies": Reply,
    "upvotes": Upvote,
    "downvotes": Downvote,
    "views": View,
}


def _count_of(model: Any) -> Any:
    return select(func.count()).select_from(model).scalar_subquery()


def _snapshot(row: SystemCounters) -> CounterSnapshot:
    return CounterSnapshot(
        users=row.users_count,
        videos=row.videos_count,
        comments=row.comments_count,
        replies=row.replies_count,
        upvotes=row.upvotes_count,
        downvotes=row.downvotes_count,
        views=row.views_count,
        updated_at=row.updated_at,
    )


class CounterService:
    """Reads, bumps and reconciles cached counters."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def reconcile(self, deadline: Deadline | None = None) -> CounterSnapshot:
        """Rewrite the global counter row from live ``COUNT(*)`` queries.

        Runs in one transaction, so the snapshot may be slightly stale relative
        to concurrent traffic but is never a mix of two points in time.
        """
        with transaction(
            self.session_factory, operation="reconcile counters", deadline=deadline
        ) as session:
            insert_if_absent(
                session,
                SystemCounters,
                {"id": SYSTEM_COUNTERS_ROW_ID, "updated_at": utcnow()},
            )
            values = {
                f"{name}_count": _count_of(model) for name, model in COUNTER_SOURCES.items()
            }
            session.execute(
                update(SystemCounters)
                .where(SystemCounters.id == SYSTEM_COUNTERS_ROW_ID)
                .values(**values, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if deadline is not None:
                deadline.check("reconcile counters")
            row = session.get(SystemCounters, SYSTEM_COUNTERS_ROW_ID)
            snapshot = _snapshot(row)

        logger.info("reconciled counters: %s", snapshot.counts())
        return snapshot

    def read_counters(self) -> CounterSnapshot:
        """Return the cached row as-is.

        Raises:
            NotInitialized: If :meth:`reconcile` has never run.
        """
        with transaction(self.session_factory, operation="read counters") as session:
            row = session.get(SystemCounters, SYSTEM_COUNTERS_ROW_ID)
            if row is None:
                raise NotInitialized()
            return _snapshot(row)

    def bump(self, **deltas: int) -> None:
        """Best-effort increment of cached global counters.

        Keys are snapshot field names (``videos=1``, ``upvotes=-1``). A missing
        row is left missing; database errors are logged and swallowed since
        :meth:`reconcile` repairs any drift.
        """
        values: dict[str, Any] = {}
        for name, delta in deltas.items():
            if name not in COUNTER_SOURCES:
                raise ValueError(f"unknown counter: {name}")
            if delta:
                column = getattr(SystemCounters, f"{name}_count")
                values[f"{name}_count"] = column + delta
        if not values:
            return

        try:
            with transaction(self.session_factory, operation="bump counters") as session:
                session.execute(
                    update(SystemCounters)
                    .where(SystemCounters.id == SYSTEM_COUNTERS_ROW_ID)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
        except ReelStageError as exc:
            logger.warning("counter bump %s skipped: %s", deltas, exc)

    def reconcile_video(self, video_id: str, deadline: Deadline | None = None) -> Video:
        """Recompute a video's engagement counters and its comments' reply counts."""
        with transaction(
            self.session_factory, operation="reconcile video counters", deadline=deadline
        ) as session:
            locked = session.scalar(
                select(Video.video_id).where(Video.video_id == video_id).with_for_update()
            )
            if locked is None:
                raise NotFound("Video not found")

            session.execute(
                update(Video)
                .where(Video.video_id == video_id)
                .values(
                    upvote_count=select(func.count())
                    .select_from(Upvote)
                    .where(Upvote.video_id == video_id)
                    .scalar_subquery(),
                    downvote_count=select(func.count())
                    .select_from(Downvote)
                    .where(Downvote.video_id == video_id)
                    .scalar_subquery(),
                    comment_count=select(func.count())
                    .select_from(Comment)
                    .where(Comment.video_id == video_id)
                    .scalar_subquery(),
                    view_count=select(func.count())
                    .select_from(View)
                    .where(View.video_id == video_id)
                    .scalar_subquery(),
                )
                .execution_options(synchronize_session=False)
            )
            session.execute(
                update(Comment)
                .where(Comment.video_id == video_id)
                .values(
                    reply_count=select(func.count())
                    .select_from(Reply)
                    .where(Reply.comment_id == Comment.comment_id)
                    .correlate(Comment)
                    .scalar_subquery()
                )
                .execution_options(synchronize_session=False)
            )
            video = session.get(Video, video_id)

        logger.info(
            "reconciled video %s: up=%d down=%d comments=%d views=%d",
            video.video_id,
            video.upvote_count,
            video.downvote_count,
            video.comment_count,
            video.view_count,
        )
        return video

    def reconcile_user(self, uid: str, deadline: Deadline | None = None) -> User:
        """Recompute a user's ``total_videos``, ``followers`` and ``following``."""
        with transaction(
            self.session_factory, operation="reconcile user counters", deadline=deadline
        ) as session:
            result = session.execute(
                update(User)
                .where(User.uid == uid)
                .values(
                    total_videos=select(func.count())
                    .select_from(Video)
                    .where(Video.owner_uid == uid)
                    .scalar_subquery(),
                    followers=select(func.count())
                    .select_from(Follow)
                    .where(Follow.followed_uid == uid)
                    .scalar_subquery(),
                    following=select(func.count())
                    .select_from(Follow)
                    .where(Follow.follower_uid == uid)
                    .scalar_subquery(),
                )
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                raise NotFound("User not found")
            user = session.get(User, uid)
        return user
