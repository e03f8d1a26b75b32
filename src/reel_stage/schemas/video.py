# src/reel_stage/schemas/video.py
"""Video-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VideoMetadata(BaseModel):
    """Client-supplied metadata for a new upload."""

    video_title: str = Field(..., min_length=1, max_length=200)
    video_description: str = Field("", max_length=5000)
    video_tags: list[str] = Field(default_factory=list, max_length=30)

    @field_validator("video_tags")
    @classmethod
    def _normalize_tags(cls, tags: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in tags:
            cleaned = tag.strip()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return seen


class UploadLocationResponse(BaseModel):
    """Presigned write location for one asset part."""

    path: str
    url: str
    expires_at: datetime


class UploadSlot(BaseModel):
    """Result of opening an upload: the staged id and where to PUT each part."""

    video_id: str
    locations: dict[str, UploadLocationResponse]


class VideoResponse(BaseModel):
    """Published video as returned by the API."""

    video_id: str
    owner_uid: str
    video_path: str
    thumbnail_path: str
    title: str
    description: str
    tags: list[str]
    view_count: int
    upvote_count: int
    downvote_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VideoDetailResponse(BaseModel):
    """Video plus the caller's reaction state and the public playback URL."""

    video: VideoResponse
    video_url: str | None = None
    upvoted: bool = False
    downvoted: bool = False
    view_error: str | None = None
