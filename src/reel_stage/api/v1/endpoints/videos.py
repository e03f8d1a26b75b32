# src/reel_stage/api/v1/endpoints/videos.py
"""Video upload, publication, retrieval and deletion endpoints."""

import logging

from fastapi import APIRouter, status

from reel_stage.core.errors import ReelStageError
from reel_stage.core.settings import settings
from reel_stage.schemas.video import (
    UploadSlot,
    VideoDetailResponse,
    VideoMetadata,
    VideoResponse,
)

from ..dependencies import (
    CurrentUserDep,
    DeadlineDep,
    OptionalUserDep,
    PublicationServiceDep,
    ReactionServiceDep,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"])


def public_asset_url(path: str) -> str | None:
    """Return the public URL of an object key, if a public base is configured."""
    if not settings.public_asset_base_url:
        return None
    return f"{settings.public_asset_base_url.rstrip('/')}/{path.lstrip('/')}"


@router.post("/upload", response_model=UploadSlot, status_code=status.HTTP_201_CREATED)
def begin_upload(
    metadata: VideoMetadata,
    current_user: CurrentUserDep,
    publication: PublicationServiceDep,
    deadline: DeadlineDep,
) -> UploadSlot:
    """Stage a new video and return presigned PUT locations for its parts."""
    return publication.begin_upload(current_user.uid, metadata, deadline)


@router.post("/upload/ack/{video_id}", response_model=VideoResponse)
def acknowledge_upload(
    video_id: str,
    current_user: CurrentUserDep,
    publication: PublicationServiceDep,
    deadline: DeadlineDep,
) -> VideoResponse:
    """Publish a staged video once every part is in object storage."""
    video = publication.acknowledge(video_id, current_user.uid, deadline)
    return VideoResponse.model_validate(video)


@router.get("/{video_id}", response_model=VideoDetailResponse)
def get_video(
    video_id: str,
    current_user: OptionalUserDep,
    publication: PublicationServiceDep,
    reactions: ReactionServiceDep,
    deadline: DeadlineDep,
) -> VideoDetailResponse:
    """Return a published video and count the view.

    A failed view increment does not fail the read; it is reported in
    ``view_error`` instead.
    """
    video = publication.get_video(video_id)
    viewer_uid = current_user.uid if current_user else None

    view_error = None
    try:
        reactions.record_view(video_id, viewer_uid, deadline)
    except ReelStageError as exc:
        logger.warning("view of %s not recorded: %s", video_id, exc.detail)
        view_error = exc.detail

    upvoted = downvoted = False
    if viewer_uid is not None:
        state = reactions.reaction_state(viewer_uid, video_id)
        upvoted, downvoted = state.upvoted, state.downvoted

    return VideoDetailResponse(
        video=VideoResponse.model_validate(video),
        video_url=public_asset_url(video.video_path),
        upvoted=upvoted,
        downvoted=downvoted,
        view_error=view_error,
    )


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_video(
    video_id: str,
    current_user: CurrentUserDep,
    publication: PublicationServiceDep,
    deadline: DeadlineDep,
) -> None:
    """Delete one of the caller's own videos."""
    publication.delete(video_id, current_user.uid, deadline=deadline)
