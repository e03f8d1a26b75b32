# src/reel_stage/services/moderation.py
"""Administrative removal of comments and replies."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, sessionmaker

from reel_stage.core.errors import Forbidden, NotFound
from reel_stage.db.transaction import Deadline, transaction
from reel_stage.models import Comment, Reply, User, Video
from reel_stage.services.counters import CounterService

logger = logging.getLogger(__name__)


def _require_admin(session: Session, actor_uid: str) -> None:
    actor = session.get(User, actor_uid)
    if actor is None or not actor.is_admin:
        raise Forbidden("Forbidden: admin role required")


class ModerationService:
    """Service removing user content on behalf of administrators."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        counters: CounterService | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.counters = counters or CounterService(session_factory)

    def delete_comment(
        self, comment_id: str, actor_uid: str, deadline: Deadline | None = None
    ) -> None:
        """Delete a comment with its replies and decrement the video's comment count.

        Raises:
            Forbidden: The actor is not an admin.
            NotFound: The comment does not exist.
        """
        with transaction(
            self.session_factory, operation="delete comment", deadline=deadline
        ) as session:
            _require_admin(session, actor_uid)
            video_id = session.scalar(
                select(Comment.video_id).where(Comment.comment_id == comment_id)
            )
            if video_id is None:
                raise NotFound("Comment not found")

            # Lock order matches the reaction path: video first, then comment.
            session.execute(
                select(Video.video_id).where(Video.video_id == video_id).with_for_update()
            )
            session.execute(
                select(Comment.comment_id)
                .where(Comment.comment_id == comment_id)
                .with_for_update()
            )
            reply_total = session.scalar(
                select(func.count()).select_from(Reply).where(Reply.comment_id == comment_id)
            ) or 0

            removed = session.execute(
                delete(Comment)
                .where(Comment.comment_id == comment_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            if not removed:
                raise NotFound("Comment not found")
            session.execute(
                update(Video)
                .where(Video.video_id == video_id, Video.comment_count > 0)
                .values(comment_count=Video.comment_count - 1)
                .execution_options(synchronize_session=False)
            )

        logger.info(
            "admin %s deleted comment %s on %s (%d replies)",
            actor_uid,
            comment_id,
            video_id,
            reply_total,
        )
        self.counters.bump(comments=-1, replies=-reply_total)

    def delete_reply(
        self, reply_id: str, actor_uid: str, deadline: Deadline | None = None
    ) -> None:
        """Delete a reply and decrement its comment's reply count."""
        with transaction(
            self.session_factory, operation="delete reply", deadline=deadline
        ) as session:
            _require_admin(session, actor_uid)
            comment_id = session.scalar(
                select(Reply.comment_id).where(Reply.reply_id == reply_id)
            )
            if comment_id is None:
                raise NotFound("Reply not found")

            session.execute(
                select(Comment.comment_id)
                .where(Comment.comment_id == comment_id)
                .with_for_update()
            )
            removed = session.execute(
                delete(Reply)
                .where(Reply.reply_id == reply_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            if not removed:
                raise NotFound("Reply not found")
            session.execute(
                update(Comment)
                .where(Comment.comment_id == comment_id, Comment.reply_count > 0)
                .values(reply_count=Comment.reply_count - 1)
                .execution_options(synchronize_session=False)
            )

        logger.info("admin %s deleted reply %s on comment %s", actor_uid, reply_id, comment_id)
        self.counters.bump(replies=-1)
