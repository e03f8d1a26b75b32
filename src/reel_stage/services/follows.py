"""Follow edges between users and their cached counters.

Both user rows are locked in uid order before the edge changes, so a pair
of users following each other at the same time cannot deadlock. The
``followers``/``following`` columns move only when an edge row was really
inserted or deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, sessionmaker

from reel_stage.core.errors import Conflict, InvalidArgument, NotFound
from reel_stage.db.time import utcnow
from reel_stage.db.transaction import Deadline, insert_if_absent, transaction
from reel_stage.models import Follow, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowOutcome:
    """Edge endpoints plus both users' counters after the change."""

    follower_uid: str
    followed_uid: str
    followers: int
    following: int


def _resolve_target(session: Session, username: str) -> str:
    name = (username or "").strip()
    if not name:
        raise InvalidArgument("Username is required")
    uid = session.scalar(select(User.uid).where(User.username == name))
    if uid is None:
        raise NotFound("User not found")
    return uid


def _lock_pair(session: Session, actor_uid: str, target_uid: str) -> None:
    locked = session.scalars(
        select(User.uid)
        .where(User.uid.in_([actor_uid, target_uid]))
        .order_by(User.uid)
        .with_for_update()
    ).all()
    if actor_uid not in locked:
        raise NotFound("User not found")


def _shift_follow_counters(session: Session, actor_uid: str, target_uid: str, delta: int) -> None:
    session.execute(
        update(User)
        .where(User.uid == target_uid)
        .values(followers=User.followers + delta)
        .execution_options(synchronize_session=False)
    )
    session.execute(
        update(User)
        .where(User.uid == actor_uid)
        .values(following=User.following + delta)
        .execution_options(synchronize_session=False)
    )


def _outcome(session: Session, actor_uid: str, target_uid: str) -> FollowOutcome:
    followers = session.scalar(select(User.followers).where(User.uid == target_uid))
    following = session.scalar(select(User.following).where(User.uid == actor_uid))
    return FollowOutcome(
        follower_uid=actor_uid,
        followed_uid=target_uid,
        followers=followers,
        following=following,
    )


class FollowService:
    """Creates and removes follow edges."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def follow(
        self, actor_uid: str, username: str, deadline: Deadline | None = None
    ) -> FollowOutcome:
        """Make ``actor_uid`` follow the user named ``username``.

        Raises:
            InvalidArgument: Blank username, or the actor targets themself.
            NotFound: Either user is absent.
            Conflict: The actor already follows the target.
        """
        with transaction(self.session_factory, operation="follow", deadline=deadline) as session:
            target_uid = _resolve_target(session, username)
            if target_uid == actor_uid:
                raise InvalidArgument("You cannot follow yourself")
            _lock_pair(session, actor_uid, target_uid)

            created = insert_if_absent(
                session,
                Follow,
                {
                    "follower_uid": actor_uid,
                    "followed_uid": target_uid,
                    "followed_at": utcnow(),
                },
            )
            if not created:
                raise Conflict("You are already following this user")
            _shift_follow_counters(session, actor_uid, target_uid, 1)
            outcome = _outcome(session, actor_uid, target_uid)

        logger.debug("%s followed %s", actor_uid, outcome.followed_uid)
        return outcome

    def unfollow(
        self, actor_uid: str, username: str, deadline: Deadline | None = None
    ) -> FollowOutcome:
        """Remove the actor's follow edge to ``username``; ``Conflict`` if there is none."""
        with transaction(
            self.session_factory, operation="unfollow", deadline=deadline
        ) as session:
            target_uid = _resolve_target(session, username)
            _lock_pair(session, actor_uid, target_uid)

            removed = session.execute(
                delete(Follow)
                .where(Follow.follower_uid == actor_uid, Follow.followed_uid == target_uid)
                .execution_options(synchronize_session=False)
            ).rowcount
            if not removed:
                raise Conflict("You are not following this user")
            _shift_follow_counters(session, actor_uid, target_uid, -removed)
            outcome = _outcome(session, actor_uid, target_uid)

        logger.debug("%s unfollowed %s", actor_uid, outcome.followed_uid)
        return outcome
