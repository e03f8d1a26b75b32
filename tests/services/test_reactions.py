# tests/services/test_reactions.py
"""Tests for votes, comments, replies and views."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func, select

from reel_stage.core.errors import DeadlineExceeded, InvalidArgument, NotFound
from reel_stage.db.transaction import Deadline, transaction
from reel_stage.models import Comment, Downvote, Reply, Upvote, Video, View


def _edges(session_factory, model, actor_uid: str, video_id: str) -> int:
    with transaction(session_factory, operation="count edges") as session:
        return session.scalar(
            select(func.count())
            .select_from(model)
            .where(model.actor_uid == actor_uid, model.video_id == video_id)
        )


def _video(session_factory, video_id: str) -> Video:
    with transaction(session_factory, operation="read video") as session:
        return session.get(Video, video_id)


def _comment(session_factory, comment_id: str) -> Comment:
    with transaction(session_factory, operation="read comment") as session:
        return session.get(Comment, comment_id)


class CancelAfter(Deadline):
    """Deadline that cancels itself after a number of checkpoints."""

    def __init__(self, checkpoints: int) -> None:
        super().__init__(None)
        self.remaining_checks = checkpoints

    def check(self, operation: str = "operation") -> None:
        if self.remaining_checks <= 0:
            self.cancel()
        self.remaining_checks -= 1
        super().check(operation)


@pytest.fixture()
def video(publish_video, alice) -> Video:
    return publish_video(alice.uid)


def test_duplicate_upvote_counts_once(reactions, session_factory, video, bob):
    first = reactions.set_upvote(bob.uid, video.video_id)
    second = reactions.set_upvote(bob.uid, video.video_id)

    assert first.created is True
    assert second.created is False
    assert _edges(session_factory, Upvote, bob.uid, video.video_id) == 1
    assert _video(session_factory, video.video_id).upvote_count == 1


def test_upvote_then_downvote_switches_edge(reactions, session_factory, video, bob):
    reactions.set_upvote(bob.uid, video.video_id)
    outcome = reactions.set_downvote(bob.uid, video.video_id)

    assert outcome.created is True
    assert outcome.cleared_opposite is True
    assert _edges(session_factory, Upvote, bob.uid, video.video_id) == 0
    assert _edges(session_factory, Downvote, bob.uid, video.video_id) == 1
    refreshed = _video(session_factory, video.video_id)
    assert (refreshed.upvote_count, refreshed.downvote_count) == (0, 1)


@pytest.mark.parametrize(
    "sequence",
    [
        ["up", "down", "up"],
        ["down", "down", "up", "up", "down"],
        ["up", "up", "down", "down"],
    ],
)
def test_last_vote_wins(reactions, session_factory, video, bob, sequence):
    for step in sequence:
        if step == "up":
            reactions.set_upvote(bob.uid, video.video_id)
        else:
            reactions.set_downvote(bob.uid, video.video_id)

    ups = _edges(session_factory, Upvote, bob.uid, video.video_id)
    downs = _edges(session_factory, Downvote, bob.uid, video.video_id)
    assert ups + downs == 1
    assert (ups == 1) == (sequence[-1] == "up")

    refreshed = _video(session_factory, video.video_id)
    assert (refreshed.upvote_count, refreshed.downvote_count) == (ups, downs)
    assert reactions.reaction_state(bob.uid, video.video_id).upvoted == (ups == 1)


def test_concurrent_upvotes_create_one_edge(reactions, session_factory, video, bob):
    with ThreadPoolExecutor(max_workers=50) as pool:
        outcomes = list(
            pool.map(lambda _: reactions.set_upvote(bob.uid, video.video_id), range(50))
        )

    assert sum(outcome.created for outcome in outcomes) == 1
    assert _edges(session_factory, Upvote, bob.uid, video.video_id) == 1
    assert _video(session_factory, video.video_id).upvote_count == 1


def test_concurrent_opposite_votes_leave_one_edge(reactions, session_factory, video, bob):
    def vote(index: int):
        if index % 2:
            return reactions.set_upvote(bob.uid, video.video_id)
        return reactions.set_downvote(bob.uid, video.video_id)

    with ThreadPoolExecutor(max_workers=20) as pool:
        list(pool.map(vote, range(40)))

    ups = _edges(session_factory, Upvote, bob.uid, video.video_id)
    downs = _edges(session_factory, Downvote, bob.uid, video.video_id)
    assert ups + downs == 1
    refreshed = _video(session_factory, video.video_id)
    assert (refreshed.upvote_count, refreshed.downvote_count) == (ups, downs)


def test_vote_on_missing_video(reactions, bob):
    with pytest.raises(NotFound):
        reactions.set_upvote(bob.uid, "missing")


def test_cancelled_vote_leaves_no_partial_mutation(reactions, session_factory, video, bob):
    reactions.set_downvote(bob.uid, video.video_id)

    # Survives the opening checkpoint, cancels between removing the downvote
    # and inserting the upvote.
    with pytest.raises(DeadlineExceeded):
        reactions.set_upvote(bob.uid, video.video_id, deadline=CancelAfter(1))

    assert _edges(session_factory, Downvote, bob.uid, video.video_id) == 1
    assert _edges(session_factory, Upvote, bob.uid, video.video_id) == 0
    refreshed = _video(session_factory, video.video_id)
    assert (refreshed.upvote_count, refreshed.downvote_count) == (0, 1)


def test_expired_deadline_rejects_before_any_work(reactions, session_factory, video, bob):
    deadline = Deadline(0)
    with pytest.raises(DeadlineExceeded):
        reactions.comment(bob.uid, video.video_id, "late", deadline)
    assert _video(session_factory, video.video_id).comment_count == 0


def test_comment_increments_count(reactions, session_factory, video, bob):
    comment = reactions.comment(bob.uid, video.video_id, "  great clip  ")

    assert comment.body == "great clip"
    assert comment.video_id == video.video_id
    assert len(comment.comment_id) == 64
    assert _video(session_factory, video.video_id).comment_count == 1


def test_blank_comment_is_invalid(reactions, video, bob):
    with pytest.raises(InvalidArgument):
        reactions.comment(bob.uid, video.video_id, "   ")


def test_comment_on_missing_video(reactions, bob):
    with pytest.raises(NotFound):
        reactions.comment(bob.uid, "missing", "hello")


def test_second_reply_overwrites_first(reactions, session_factory, video, alice, bob):
    comment = reactions.comment(bob.uid, video.video_id, "first!")

    first = reactions.reply(alice.uid, comment.comment_id, "thanks")
    second = reactions.reply(alice.uid, comment.comment_id, "thanks a lot")

    assert first.created is True
    assert second.created is False
    assert second.reply_id == first.reply_id

    with transaction(session_factory, operation="read replies") as session:
        rows = list(session.scalars(select(Reply).where(Reply.comment_id == comment.comment_id)))
    assert len(rows) == 1
    assert rows[0].body == "thanks a lot"
    assert _comment(session_factory, comment.comment_id).reply_count == 1


def test_replies_from_different_authors(reactions, session_factory, video, alice, bob):
    comment = reactions.comment(bob.uid, video.video_id, "question?")
    reactions.reply(alice.uid, comment.comment_id, "answer")
    reactions.reply(bob.uid, comment.comment_id, "follow-up")

    assert _comment(session_factory, comment.comment_id).reply_count == 2


def test_reply_validation_and_missing_comment(reactions, bob):
    with pytest.raises(InvalidArgument):
        reactions.reply(bob.uid, "missing", "")
    with pytest.raises(NotFound):
        reactions.reply(bob.uid, "missing", "hello")


def test_record_view_counts_every_call(reactions, session_factory, video, bob):
    reactions.record_view(video.video_id, bob.uid)
    reactions.record_view(video.video_id, bob.uid)
    reactions.record_view(video.video_id)

    assert _video(session_factory, video.video_id).view_count == 3
    with transaction(session_factory, operation="count views") as session:
        anonymous = session.scalar(
            select(func.count()).select_from(View).where(View.viewer_uid.is_(None))
        )
    assert anonymous == 1


def test_record_view_missing_video(reactions):
    with pytest.raises(NotFound):
        reactions.record_view("missing")


def test_reaction_state_defaults(reactions, video, bob):
    state = reactions.reaction_state(bob.uid, video.video_id)
    assert (state.upvoted, state.downvoted) == (False, False)


def test_concurrent_replies_keep_one_row(reactions, session_factory, video, alice, bob):
    comment = reactions.comment(bob.uid, video.video_id, "first")

    with ThreadPoolExecutor(max_workers=30) as pool:
        outcomes = list(
            pool.map(
                lambda index: reactions.reply(alice.uid, comment.comment_id, f"reply {index}"),
                range(30),
            )
        )

    assert sum(outcome.created for outcome in outcomes) == 1
    assert len({outcome.reply_id for outcome in outcomes}) == 1
    with transaction(session_factory, operation="count replies") as session:
        rows = session.scalar(
            select(func.count()).select_from(Reply).where(Reply.comment_id == comment.comment_id)
        )
    assert rows == 1
    assert _comment(session_factory, comment.comment_id).reply_count == 1
