# src/reel_stage/models/__init__.py
"""SQLAlchemy models for the Reel Stage application."""

from .comment import Comment, Reply
from .follow import Follow
from .system_counters import SystemCounters
from .user import User
from .video import StagedVideo, Video
from .vote import Downvote, Upvote, View

__all__ = [
    "Comment", "Reply",
    "Follow",
    "SystemCounters",
    "User",
    "StagedVideo", "Video",
    "Downvote", "Upvote", "View",
]
