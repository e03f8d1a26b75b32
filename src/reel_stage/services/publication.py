"""Publication protocol: staged upload -> published video.

A video id lives in at most one of ``video_on_upload`` and ``videos``. The
only transition between them is :meth:`PublicationService.acknowledge`, which
deletes the staged row and inserts the published row in one transaction after
object storage has confirmed every asset part exists.

Side effects outside the database (search index, object cleanup, cached
counters) are scheduled after commit and can only fail into the log.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, sessionmaker

from reel_stage.core.errors import AssetMissing, Forbidden, NotFound, ReelStageError, Unavailable
from reel_stage.core.settings import settings
from reel_stage.db.time import utc_cutoff, utcnow
from reel_stage.db.transaction import Deadline, transaction
from reel_stage.models import StagedVideo, User, Video
from reel_stage.schemas.video import UploadLocationResponse, UploadSlot, VideoMetadata
from reel_stage.services.background import BackgroundDispatcher
from reel_stage.services.counters import CounterService
from reel_stage.services.search_index import IndexNotifier
from reel_stage.services.storage import (
    ASSET_THUMBNAIL,
    ASSET_VIDEO,
    ObjectStorage,
    StorageError,
    asset_paths,
)
from reel_stage.utils.hash import generate_entity_id

logger = logging.getLogger(__name__)


class PublicationService:
    """Owns the staged -> published -> deleted lifecycle of videos."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        storage: ObjectStorage,
        notifier: IndexNotifier,
        dispatcher: BackgroundDispatcher,
        counters: CounterService | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.storage = storage
        self.notifier = notifier
        self.dispatcher = dispatcher
        self.counters = counters or CounterService(session_factory)

    # --- Staging ------------------------------------------------------------------

    def begin_upload(
        self,
        owner_uid: str,
        metadata: VideoMetadata,
        deadline: Deadline | None = None,
    ) -> UploadSlot:
        """Create a staged row and presigned write locations for its parts.

        Raises:
            NotFound: If the owner has no user row.
            Unavailable: If object storage cannot presign a location; the staged
                row is rolled back.
        """
        video_id = generate_entity_id(owner_uid)
        paths = asset_paths(video_id)

        with transaction(
            self.session_factory, operation="begin upload", deadline=deadline
        ) as session:
            if session.get(User, owner_uid) is None:
                raise NotFound("User not found")

            session.add(
                StagedVideo(
                    video_id=video_id,
                    owner_uid=owner_uid,
                    video_path=paths[ASSET_VIDEO],
                    thumbnail_path=paths[ASSET_THUMBNAIL],
                    title=metadata.video_title,
                    description=metadata.video_description,
                    tags=list(metadata.video_tags),
                )
            )
            session.flush()

            # Presign inside the transaction so a storage failure leaves no row.
            locations: dict[str, UploadLocationResponse] = {}
            for part, path in paths.items():
                try:
                    location = self.storage.request_upload_location(path)
                except StorageError as exc:
                    logger.error("begin upload %s: presign failed for %s: %s", video_id, path, exc)
                    raise Unavailable("Failed to generate upload location") from exc
                locations[part] = UploadLocationResponse(
                    path=location.path,
                    url=location.url,
                    expires_at=location.expires_at,
                )

        logger.info("staged upload %s for %s", video_id, owner_uid)
        return UploadSlot(video_id=video_id, locations=locations)

    # --- Publication --------------------------------------------------------------

    def _missing_parts(self, staged: StagedVideo) -> list[str]:
        missing: list[str] = []
        for part, path in (
            (ASSET_VIDEO, staged.video_path),
            (ASSET_THUMBNAIL, staged.thumbnail_path),
        ):
            try:
                present = self.storage.exists(path)
            except StorageError as exc:
                logger.error("acknowledge %s: existence check failed for %s: %s", staged.video_id, path, exc)
                raise Unavailable("Object storage did not respond") from exc
            if not present:
                missing.append(part)
        return missing

    def acknowledge(
        self,
        video_id: str,
        actor_uid: str,
        deadline: Deadline | None = None,
    ) -> Video:
        """Promote a staged upload to a published video.

        Raises:
            NotFound: No staged row (never staged, or already acknowledged).
            Forbidden: The actor does not own the staged row.
            AssetMissing: At least one asset part is not in object storage.
            Unavailable: Object storage could not answer the existence check.
        """
        with transaction(
            self.session_factory, operation="acknowledge read", deadline=deadline
        ) as session:
            staged = session.get(StagedVideo, video_id)
            if staged is None:
                raise NotFound("Video not found")
            if staged.owner_uid != actor_uid:
                raise Forbidden("Forbidden: you do not own this video")

        # Storage is consulted outside any transaction; nothing is held while waiting.
        missing = self._missing_parts(staged)
        if missing:
            raise AssetMissing(f"Uploaded asset not found: {', '.join(missing)}")
        if deadline is not None:
            deadline.check("acknowledge")

        with transaction(
            self.session_factory, operation="acknowledge", deadline=deadline
        ) as session:
            # Re-read under lock: a concurrent acknowledge may have consumed it.
            staged = session.scalar(
                select(StagedVideo).where(StagedVideo.video_id == video_id).with_for_update()
            )
            if staged is None:
                raise NotFound("Video not found")

            result = session.execute(
                delete(StagedVideo)
                .where(StagedVideo.video_id == video_id, StagedVideo.owner_uid == actor_uid)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                raise NotFound("Video not found")

            now = utcnow()
            video = Video(
                video_id=staged.video_id,
                owner_uid=staged.owner_uid,
                video_path=staged.video_path,
                thumbnail_path=staged.thumbnail_path,
                title=staged.title,
                description=staged.description,
                tags=list(staged.tags or []),
                view_count=0,
                upvote_count=0,
                downvote_count=0,
                comment_count=0,
                created_at=staged.created_at or now,
                updated_at=now,
            )
            session.expunge(staged)
            session.add(video)
            session.execute(
                update(User)
                .where(User.uid == staged.owner_uid)
                .values(total_videos=User.total_videos + 1)
                .execution_options(synchronize_session=False)
            )
            session.flush()
            owner_username = session.scalar(select(User.username).where(User.uid == video.owner_uid))

        logger.info("published video %s for %s", video_id, actor_uid)
        self.notifier.video_published(video, owner_username)
        self.counters.bump(videos=1)
        return video

    # --- Reads --------------------------------------------------------------------

    def get_video(self, video_id: str) -> Video:
        with transaction(self.session_factory, operation="get video") as session:
            video = session.get(Video, video_id)
            if video is None:
                raise NotFound("Video not found")
            return video

    # --- Deletion -----------------------------------------------------------------

    def delete(
        self,
        video_id: str,
        actor_uid: str,
        *,
        as_admin: bool = False,
        deadline: Deadline | None = None,
    ) -> None:
        """Delete a published video and everything that references it.

        The row deletion never waits on object storage: asset removal, the
        owner counter decrement and the index delete all happen after commit
        and are best-effort.

        Raises:
            NotFound: The video does not exist.
            Forbidden: The actor is neither the owner nor (for ``as_admin``) an admin.
        """
        with transaction(
            self.session_factory, operation="delete video", deadline=deadline
        ) as session:
            video = session.scalar(
                select(Video).where(Video.video_id == video_id).with_for_update()
            )
            if video is None:
                raise NotFound("Video not found")

            if as_admin:
                actor = session.get(User, actor_uid)
                if actor is None or not actor.is_admin:
                    raise Forbidden("Forbidden: admin role required")
            elif video.owner_uid != actor_uid:
                raise Forbidden("Forbidden: you do not own this video")

            owner_uid = video.owner_uid
            paths = [video.video_path, video.thumbnail_path]
            # ON DELETE CASCADE removes votes, comments (and their replies) and views.
            session.execute(
                delete(Video)
                .where(Video.video_id == video_id)
                .execution_options(synchronize_session=False)
            )

        logger.info("deleted video %s (actor=%s, admin=%s)", video_id, actor_uid, as_admin)
        self._decrement_owner(owner_uid, video_id)
        for path in paths:
            self.dispatcher.submit(f"delete asset {path}", self._delete_asset, video_id, path)
        self.notifier.video_deleted(video_id)
        self.counters.bump(videos=-1)

    def _decrement_owner(self, owner_uid: str, video_id: str) -> None:
        try:
            with transaction(self.session_factory, operation="decrement owner videos") as session:
                session.execute(
                    update(User)
                    .where(User.uid == owner_uid, User.total_videos > 0)
                    .values(total_videos=User.total_videos - 1)
                    .execution_options(synchronize_session=False)
                )
        except ReelStageError as exc:
            logger.warning(
                "delete video %s: failed to update total_videos for %s: %s",
                video_id,
                owner_uid,
                exc,
            )

    def _delete_asset(self, video_id: str, path: str) -> None:
        try:
            if not self.storage.exists(path):
                logger.info("delete video %s: %s not in storage, skipping", video_id, path)
                return
            self.storage.delete(path)
        except StorageError as exc:
            logger.critical(
                "delete video %s: failed to delete %s from storage: %s", video_id, path, exc
            )
            return

        try:
            still_there = self.storage.exists(path)
        except StorageError:
            still_there = False
        if still_there:
            logger.critical("delete video %s: %s still exists after deletion", video_id, path)
        else:
            logger.info("delete video %s: deleted %s", video_id, path)

    # --- Abandoned uploads --------------------------------------------------------

    def sweep_stale_uploads(
        self,
        older_than_seconds: int | None = None,
        deadline: Deadline | None = None,
    ) -> int:
        """Discard staged uploads that were never acknowledged.

        Returns the number of discarded rows. Partially uploaded objects are
        removed in the background.
        """
        ttl = settings.staged_upload_ttl_seconds if older_than_seconds is None else older_than_seconds
        cutoff = utc_cutoff(ttl)

        with transaction(
            self.session_factory, operation="sweep stale uploads", deadline=deadline
        ) as session:
            stale = list(
                session.scalars(
                    select(StagedVideo).where(StagedVideo.created_at < cutoff).with_for_update()
                )
            )
            if not stale:
                return 0
            session.execute(
                delete(StagedVideo)
                .where(StagedVideo.video_id.in_([row.video_id for row in stale]))
                .execution_options(synchronize_session=False)
            )

        for row in stale:
            for path in (row.video_path, row.thumbnail_path):
                self.dispatcher.submit(f"discard asset {path}", self._delete_asset, row.video_id, path)
        logger.info("discarded %d stale uploads older than %s", len(stale), cutoff.isoformat())
        return len(stale)
