"""Reaction state machine: votes, comments, replies and views.

For every (actor, video) pair at most one of {upvote, downvote} exists. Each
operation runs as one transaction that first locks the target row, so
concurrent reactions on the same target serialize in the database. Edge
inserts go through ``INSERT ... ON CONFLICT DO NOTHING`` and counters move
only when a row was actually inserted or deleted, which keeps repeated or
racing calls idempotent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, exists, select, update
from sqlalchemy.orm import Session, sessionmaker

from reel_stage.core.errors import InvalidArgument, NotFound
from reel_stage.db.time import utcnow
from reel_stage.db.transaction import Deadline, insert_if_absent, transaction
from reel_stage.models import Comment, Downvote, Reply, Upvote, Video, View
from reel_stage.services.counters import CounterService
from reel_stage.utils.hash import generate_entity_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteKind:
    """One side of the vote pair: its edge table, counter column and cache field."""

    name: str
    edge: Any
    counter: str
    cache_field: str


UPVOTE = VoteKind("upvote", Upvote, "upvote_count", "upvotes")
DOWNVOTE = VoteKind("downvote", Downvote, "downvote_count", "downvotes")
_OPPOSITE = {UPVOTE.name: DOWNVOTE, DOWNVOTE.name: UPVOTE}


@dataclass(frozen=True)
class VoteOutcome:
    """What a vote call changed.

    ``created`` is False when the requested vote already existed.
    ``cleared_opposite`` is True when an opposite vote was removed.
    """

    kind: str
    created: bool
    cleared_opposite: bool


@dataclass(frozen=True)
class ReplyOutcome:
    reply_id: str
    comment_id: str
    author_uid: str
    body: str
    created: bool


@dataclass(frozen=True)
class ReactionState:
    upvoted: bool
    downvoted: bool


def _clean_body(body: str | None, what: str) -> str:
    text = (body or "").strip()
    if not text:
        raise InvalidArgument(f"{what} text is required")
    return text


def _lock_video(session: Session, video_id: str) -> None:
    locked = session.scalar(
        select(Video.video_id).where(Video.video_id == video_id).with_for_update()
    )
    if locked is None:
        raise NotFound("Video not found")


def _shift_counter(session: Session, model: Any, key: Any, column: str, delta: int) -> None:
    session.execute(
        update(model)
        .where(key)
        .values({column: getattr(model, column) + delta})
        .execution_options(synchronize_session=False)
    )


class ReactionService:
    """Applies reactions and keeps per-target counters in lock-step."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        counters: CounterService | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.counters = counters or CounterService(session_factory)

    # --- Votes --------------------------------------------------------------------

    def set_upvote(
        self, actor_uid: str, video_id: str, deadline: Deadline | None = None
    ) -> VoteOutcome:
        return self._set_vote(UPVOTE, actor_uid, video_id, deadline)

    def set_downvote(
        self, actor_uid: str, video_id: str, deadline: Deadline | None = None
    ) -> VoteOutcome:
        return self._set_vote(DOWNVOTE, actor_uid, video_id, deadline)

    def _set_vote(
        self,
        kind: VoteKind,
        actor_uid: str,
        video_id: str,
        deadline: Deadline | None,
    ) -> VoteOutcome:
        opposite = _OPPOSITE[kind.name]
        video_key = Video.video_id == video_id

        with transaction(
            self.session_factory, operation=f"set {kind.name}", deadline=deadline
        ) as session:
            _lock_video(session, video_id)

            removed = session.execute(
                delete(opposite.edge)
                .where(opposite.edge.actor_uid == actor_uid, opposite.edge.video_id == video_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            if removed:
                _shift_counter(session, Video, video_key, opposite.counter, -removed)

            if deadline is not None:
                deadline.check(f"set {kind.name}")

            created = insert_if_absent(
                session,
                kind.edge,
                {"actor_uid": actor_uid, "video_id": video_id, "created_at": utcnow()},
            )
            if created:
                _shift_counter(session, Video, video_key, kind.counter, 1)

        outcome = VoteOutcome(kind=kind.name, created=created, cleared_opposite=bool(removed))
        logger.debug("%s by %s on %s: %s", kind.name, actor_uid, video_id, outcome)
        self.counters.bump(
            **{kind.cache_field: int(created), opposite.cache_field: -int(bool(removed))}
        )
        return outcome

    def reaction_state(self, actor_uid: str, video_id: str) -> ReactionState:
        """Return which vote, if any, ``actor_uid`` currently holds on the video."""
        with transaction(self.session_factory, operation="reaction state") as session:
            upvoted = session.scalar(
                select(
                    exists().where(Upvote.actor_uid == actor_uid, Upvote.video_id == video_id)
                )
            )
            downvoted = session.scalar(
                select(
                    exists().where(Downvote.actor_uid == actor_uid, Downvote.video_id == video_id)
                )
            )
        return ReactionState(upvoted=bool(upvoted), downvoted=bool(downvoted))

    # --- Comments and replies -----------------------------------------------------

    def comment(
        self,
        actor_uid: str,
        video_id: str,
        body: str,
        deadline: Deadline | None = None,
    ) -> Comment:
        text = _clean_body(body, "Comment")
        with transaction(
            self.session_factory, operation="comment", deadline=deadline
        ) as session:
            _lock_video(session, video_id)
            comment = Comment(
                comment_id=generate_entity_id(actor_uid, video_id),
                video_id=video_id,
                author_uid=actor_uid,
                body=text,
                reply_count=0,
                created_at=utcnow(),
            )
            session.add(comment)
            session.flush()
            _shift_counter(session, Video, Video.video_id == video_id, "comment_count", 1)

        self.counters.bump(comments=1)
        return comment

    def reply(
        self,
        actor_uid: str,
        comment_id: str,
        body: str,
        deadline: Deadline | None = None,
    ) -> ReplyOutcome:
        """Create the actor's reply to a comment, or overwrite the existing one.

        Only a newly created reply increments the comment's ``reply_count``.
        """
        text = _clean_body(body, "Reply")
        with transaction(
            self.session_factory, operation="reply", deadline=deadline
        ) as session:
            locked = session.scalar(
                select(Comment.comment_id)
                .where(Comment.comment_id == comment_id)
                .with_for_update()
            )
            if locked is None:
                raise NotFound("Comment not found")

            now = utcnow()
            created = insert_if_absent(
                session,
                Reply,
                {
                    "reply_id": generate_entity_id(actor_uid, comment_id),
                    "comment_id": comment_id,
                    "author_uid": actor_uid,
                    "body": text,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            key = (Reply.author_uid == actor_uid, Reply.comment_id == comment_id)
            if created:
                _shift_counter(
                    session, Comment, Comment.comment_id == comment_id, "reply_count", 1
                )
            else:
                session.execute(
                    update(Reply)
                    .where(*key)
                    .values(body=text, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
            reply_id = session.scalar(select(Reply.reply_id).where(*key))

        if created:
            self.counters.bump(replies=1)
        return ReplyOutcome(
            reply_id=reply_id,
            comment_id=comment_id,
            author_uid=actor_uid,
            body=text,
            created=created,
        )

    # --- Views --------------------------------------------------------------------

    def record_view(
        self,
        video_id: str,
        viewer_uid: str | None = None,
        deadline: Deadline | None = None,
    ) -> None:
        """Count one view. No authentication and no deduplication."""
        with transaction(
            self.session_factory, operation="record view", deadline=deadline
        ) as session:
            found = session.scalar(select(Video.video_id).where(Video.video_id == video_id))
            if found is None:
                raise NotFound("Video not found")
            session.add(View(video_id=video_id, viewer_uid=viewer_uid, viewed_at=utcnow()))
            _shift_counter(session, Video, Video.video_id == video_id, "view_count", 1)

        self.counters.bump(views=1)
