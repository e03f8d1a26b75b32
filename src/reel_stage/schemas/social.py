# src/reel_stage/schemas/social.py
"""Schemas for votes, comments and replies."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for commenting on a video."""

    comment: str = Field(..., max_length=5000, description="Comment body")


class ReplyCreate(BaseModel):
    """Schema for replying to a comment."""

    reply: str = Field(..., max_length=5000, description="Reply body")


class VoteResponse(BaseModel):
    message: str
    created: bool
    cleared_opposite: bool


class CommentResponse(BaseModel):
    comment_id: str
    video_id: str
    author_uid: str
    body: str
    reply_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReplyResponse(BaseModel):
    reply_id: str
    comment_id: str
    author_uid: str
    body: str
    created: bool


class ReactionStateResponse(BaseModel):
    upvoted: bool
    downvoted: bool


class FollowResponse(BaseModel):
    message: str
    follower_uid: str
    followed_uid: str
    followers: int
    following: int
