# src/reel_stage/api/v1/endpoints/admin.py
"""Administrative endpoints: moderation, counter resync and upload sweeps."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from reel_stage.schemas.counters import CounterSnapshot
from reel_stage.schemas.video import VideoResponse

from ..dependencies import (
    AdminUserDep,
    CounterServiceDep,
    DeadlineDep,
    ModerationServiceDep,
    PublicationServiceDep,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.delete("/videos/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_video(
    video_id: str,
    admin: AdminUserDep,
    publication: PublicationServiceDep,
    deadline: DeadlineDep,
) -> None:
    publication.delete(video_id, admin.uid, as_admin=True, deadline=deadline)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: str,
    admin: AdminUserDep,
    moderation: ModerationServiceDep,
    deadline: DeadlineDep,
) -> None:
    moderation.delete_comment(comment_id, admin.uid, deadline)


@router.delete("/replies/{reply_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reply(
    reply_id: str,
    admin: AdminUserDep,
    moderation: ModerationServiceDep,
    deadline: DeadlineDep,
) -> None:
    moderation.delete_reply(reply_id, admin.uid, deadline)


@router.get("/counters", response_model=CounterSnapshot)
def read_counters(admin: AdminUserDep, counters: CounterServiceDep) -> CounterSnapshot:
    """Return the cached global counters without recomputing them."""
    return counters.read_counters()


@router.post("/counters/resync", response_model=CounterSnapshot)
def resync_counters(
    admin: AdminUserDep,
    counters: CounterServiceDep,
    deadline: DeadlineDep,
) -> CounterSnapshot:
    """Recompute the global counters from the source tables."""
    return counters.reconcile(deadline)


@router.post("/videos/{video_id}/counters/resync", response_model=VideoResponse)
def resync_video_counters(
    video_id: str,
    admin: AdminUserDep,
    counters: CounterServiceDep,
    deadline: DeadlineDep,
) -> VideoResponse:
    video = counters.reconcile_video(video_id, deadline)
    return VideoResponse.model_validate(video)


@router.post("/users/{uid}/counters/resync")
def resync_user_counters(
    uid: str,
    admin: AdminUserDep,
    counters: CounterServiceDep,
    deadline: DeadlineDep,
) -> dict[str, str | int]:
    user = counters.reconcile_user(uid, deadline)
    return {
        "uid": user.uid,
        "total_videos": user.total_videos,
        "followers": user.followers,
        "following": user.following,
    }


@router.post("/uploads/sweep")
def sweep_stale_uploads(
    admin: AdminUserDep,
    publication: PublicationServiceDep,
    deadline: DeadlineDep,
    older_than_seconds: int | None = Query(default=None, ge=0),
) -> dict[str, int]:
    """Discard staged uploads that were never acknowledged."""
    discarded = publication.sweep_stale_uploads(older_than_seconds, deadline)
    return {"discarded": discarded}
