"""Object storage access for uploaded video assets.

Assets are never streamed through this service: clients upload straight to
the bucket through presigned PUT URLs, and the publication protocol only asks
whether an object exists or deletes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from reel_stage.core.settings import settings
from reel_stage.db.time import utcnow

logger = logging.getLogger(__name__)

ASSET_VIDEO = "video"
ASSET_THUMBNAIL = "thumbnail"

_MISSING_OBJECT_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class StorageError(RuntimeError):
    """Raised when the object store fails or cannot be reached."""


@dataclass(frozen=True)
class UploadLocation:
    """Time-boxed write location for one asset part."""

    path: str
    url: str
    expires_at: datetime


def video_object_key(video_id: str) -> str:
    return f"videos/{video_id}"


def thumbnail_object_key(video_id: str) -> str:
    return f"thumbnails/videos/{video_id}.jpg"


def asset_paths(video_id: str) -> dict[str, str]:
    """Return the fixed object key for every asset part of ``video_id``."""
    return {
        ASSET_VIDEO: video_object_key(video_id),
        ASSET_THUMBNAIL: thumbnail_object_key(video_id),
    }


class ObjectStorage(Protocol):
    """Capabilities the publication protocol needs from object storage."""

    def request_upload_location(self, path: str) -> UploadLocation: ...

    def exists(self, path: str) -> bool: ...

    def delete(self, path: str) -> None: ...


class S3ObjectStorage:
    """S3-compatible implementation (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(
        self,
        *,
        bucket: str,
        client: Any | None = None,
        upload_ttl_seconds: int | None = None,
    ) -> None:
        if not bucket:
            raise StorageError("bucket name cannot be empty")
        self.bucket = bucket
        self.upload_ttl_seconds = int(upload_ttl_seconds or settings.upload_url_ttl_seconds)
        self._client = client or _create_s3_client()

    def request_upload_location(self, path: str) -> UploadLocation:
        ttl = self.upload_ttl_seconds
        try:
            url = self._client.generate_presigned_url(
                ClientMethod="put_object",
                Params={"Bucket": self.bucket, "Key": path},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"failed to presign upload for {path}: {exc}") from exc
        return UploadLocation(path=path, url=str(url), expires_at=utcnow() + timedelta(seconds=ttl))

    def exists(self, path: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=path)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                return False
            raise StorageError(f"failed to check {path}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"failed to check {path}: {exc}") from exc
        return True

    def delete(self, path: str) -> None:
        if not path:
            raise StorageError("object key cannot be empty")
        try:
            result = self._client.delete_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                f"failed to delete {path} from bucket {self.bucket}: {exc}"
            ) from exc
        if result and result.get("DeleteMarker"):
            logger.info("delete marker created for %s (versioned bucket)", path)


def _create_s3_client() -> Any:
    session = boto3.session.Session()
    return session.client(
        "s3",
        endpoint_url=settings.s3_endpoint_url or None,
        region_name=settings.s3_region or None,
        aws_access_key_id=settings.s3_access_key_id or None,
        aws_secret_access_key=settings.s3_secret_access_key or None,
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


@lru_cache(maxsize=1)
def get_object_storage() -> ObjectStorage:
    """Return the process-wide object storage client."""
    return S3ObjectStorage(bucket=settings.s3_bucket)
