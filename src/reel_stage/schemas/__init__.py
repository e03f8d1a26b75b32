"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .counters import CounterSnapshot
from .social import (
    CommentCreate,
    CommentResponse,
    ReactionStateResponse,
    ReplyCreate,
    ReplyResponse,
    VoteResponse,
)
from .video import (
    UploadLocationResponse,
    UploadSlot,
    VideoDetailResponse,
    VideoMetadata,
    VideoResponse,
)

__all__ = [
    "CounterSnapshot",
    "CommentCreate", "CommentResponse",
    "ReactionStateResponse",
    "ReplyCreate", "ReplyResponse",
    "VoteResponse",
    "UploadLocationResponse", "UploadSlot",
    "VideoDetailResponse", "VideoMetadata", "VideoResponse",
]
