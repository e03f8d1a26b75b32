# src/reel_stage/api/v1/endpoints/social.py
"""Vote, comment, reply and follow endpoints."""

from fastapi import APIRouter, status

from reel_stage.schemas.social import (
    CommentCreate,
    CommentResponse,
    FollowResponse,
    ReactionStateResponse,
    ReplyCreate,
    ReplyResponse,
    VoteResponse,
)
from reel_stage.services.follows import FollowOutcome
from reel_stage.services.reactions import VoteOutcome

from ..dependencies import CurrentUserDep, DeadlineDep, FollowServiceDep, ReactionServiceDep

router = APIRouter(prefix="/social", tags=["social"])


def _vote_response(outcome: VoteOutcome, done: str, already: str) -> VoteResponse:
    return VoteResponse(
        message=done if outcome.created else already,
        created=outcome.created,
        cleared_opposite=outcome.cleared_opposite,
    )


@router.post("/videos/upvote/{video_id}", response_model=VoteResponse)
def upvote(
    video_id: str,
    current_user: CurrentUserDep,
    reactions: ReactionServiceDep,
    deadline: DeadlineDep,
) -> VoteResponse:
    """Upvote a video, replacing any downvote by the same user."""
    outcome = reactions.set_upvote(current_user.uid, video_id, deadline)
    return _vote_response(outcome, "Upvoted", "Already upvoted")


@router.post("/videos/downvote/{video_id}", response_model=VoteResponse)
def downvote(
    video_id: str,
    current_user: CurrentUserDep,
    reactions: ReactionServiceDep,
    deadline: DeadlineDep,
) -> VoteResponse:
    """Downvote a video, replacing any upvote by the same user."""
    outcome = reactions.set_downvote(current_user.uid, video_id, deadline)
    return _vote_response(outcome, "Downvoted", "Already downvoted")


@router.get("/videos/{video_id}/my-reaction", response_model=ReactionStateResponse)
def my_reaction(
    video_id: str,
    current_user: CurrentUserDep,
    reactions: ReactionServiceDep,
) -> ReactionStateResponse:
    state = reactions.reaction_state(current_user.uid, video_id)
    return ReactionStateResponse(upvoted=state.upvoted, downvoted=state.downvoted)


@router.post(
    "/videos/comment/{video_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def comment(
    video_id: str,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    reactions: ReactionServiceDep,
    deadline: DeadlineDep,
) -> CommentResponse:
    created = reactions.comment(current_user.uid, video_id, payload.comment, deadline)
    return CommentResponse.model_validate(created)


@router.post("/videos/reply/{comment_id}", response_model=ReplyResponse)
def reply(
    comment_id: str,
    payload: ReplyCreate,
    current_user: CurrentUserDep,
    reactions: ReactionServiceDep,
    deadline: DeadlineDep,
) -> ReplyResponse:
    """Reply to a comment; a second reply by the same user overwrites the first."""
    outcome = reactions.reply(current_user.uid, comment_id, payload.reply, deadline)
    return ReplyResponse(
        reply_id=outcome.reply_id,
        comment_id=outcome.comment_id,
        author_uid=outcome.author_uid,
        body=outcome.body,
        created=outcome.created,
    )


def _follow_response(outcome: FollowOutcome, message: str) -> FollowResponse:
    return FollowResponse(
        message=message,
        follower_uid=outcome.follower_uid,
        followed_uid=outcome.followed_uid,
        followers=outcome.followers,
        following=outcome.following,
    )


@router.post("/users/follow/{username}", response_model=FollowResponse)
def follow(
    username: str,
    current_user: CurrentUserDep,
    follows: FollowServiceDep,
    deadline: DeadlineDep,
) -> FollowResponse:
    outcome = follows.follow(current_user.uid, username, deadline)
    return _follow_response(outcome, "Followed successfully")


@router.post("/users/unfollow/{username}", response_model=FollowResponse)
def unfollow(
    username: str,
    current_user: CurrentUserDep,
    follows: FollowServiceDep,
    deadline: DeadlineDep,
) -> FollowResponse:
    outcome = follows.unfollow(current_user.uid, username, deadline)
    return _follow_response(outcome, "Unfollowed successfully")
