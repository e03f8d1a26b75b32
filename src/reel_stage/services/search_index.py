"""Search index client and the fire-and-forget notifier built on it.

The client talks to an Elasticsearch-compatible REST API. The notifier is the
only thing the publication protocol sees: it schedules index writes on the
background dispatcher so a slow or failing index never touches the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

import httpx

from reel_stage.core.settings import settings
from reel_stage.models import Video
from reel_stage.services.background import BackgroundDispatcher, get_dispatcher

logger = logging.getLogger(__name__)

KIND_VIDEO = "video"

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NOT_FOUND = 404


class SearchIndexError(RuntimeError):
    """Raised when the search index rejects or fails a request."""


class SearchIndex(Protocol):
    """Document-level operations the notifier needs."""

    def upsert_document(self, kind: str, doc_id: str, fields: Mapping[str, Any]) -> None: ...

    def delete_document(self, kind: str, doc_id: str) -> None: ...


@dataclass(frozen=True)
class SearchConfig:
    """Immutable configuration for search index requests."""

    enabled: bool
    base_url: str | None
    videos_index: str
    timeout_seconds: float


def load_search_config() -> SearchConfig:
    """Build configuration object from global settings."""
    return SearchConfig(
        enabled=settings.search_configured,
        base_url=settings.search_base_url,
        videos_index=settings.search_videos_index,
        timeout_seconds=float(settings.search_timeout_seconds),
    )


class SearchIndexClient:
    """HTTP client for an Elasticsearch-compatible index.

    Requests carry their own timeout, unrelated to any request deadline.
    When search is disabled every call is a silent no-op.
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or load_search_config()
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.base_url)

    def _index_for(self, kind: str) -> str:
        if kind == KIND_VIDEO:
            return self.config.videos_index
        raise SearchIndexError(f"unknown document kind: {kind}")

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=(self.config.base_url or "").rstrip("/"),
            timeout=httpx.Timeout(self.config.timeout_seconds),
            transport=self._transport,
        )

    def upsert_document(self, kind: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        path = f"/{self._index_for(kind)}/_doc/{doc_id}"
        try:
            with self._client() as client:
                response = client.put(path, json=dict(fields))
        except httpx.HTTPError as exc:
            raise SearchIndexError(f"failed to index {kind} {doc_id}: {exc}") from exc
        if response.status_code not in (HTTP_OK, HTTP_CREATED):
            raise SearchIndexError(
                f"failed to index {kind} {doc_id}: status {response.status_code}, "
                f"body: {response.text}"
            )

    def delete_document(self, kind: str, doc_id: str) -> None:
        if not self.enabled:
            return
        path = f"/{self._index_for(kind)}/_doc/{doc_id}"
        try:
            with self._client() as client:
                response = client.delete(path)
        except httpx.HTTPError as exc:
            raise SearchIndexError(f"failed to delete {kind} {doc_id}: {exc}") from exc
        # A missing document is already in the desired state.
        if response.status_code not in (HTTP_OK, HTTP_NOT_FOUND):
            raise SearchIndexError(
                f"failed to delete {kind} {doc_id}: status {response.status_code}, "
                f"body: {response.text}"
            )


def video_document(video: Video, owner_username: str | None = None) -> dict[str, Any]:
    """Return the indexed fields for a published video."""
    return {
        "video_id": video.video_id,
        "video_title": video.title,
        "video_description": video.description,
        "video_tags": list(video.tags or []),
        "user_uid": video.owner_uid,
        "user_username": owner_username,
    }


class IndexNotifier:
    """Best-effort bridge from committed state changes to the search index."""

    def __init__(self, index: SearchIndex, dispatcher: BackgroundDispatcher) -> None:
        self.index = index
        self.dispatcher = dispatcher

    def video_published(self, video: Video, owner_username: str | None = None) -> None:
        fields = video_document(video, owner_username)
        self.dispatcher.submit(
            f"index upsert video {video.video_id}",
            self.index.upsert_document,
            KIND_VIDEO,
            video.video_id,
            fields,
        )

    def video_deleted(self, video_id: str) -> None:
        self.dispatcher.submit(
            f"index delete video {video_id}",
            self.index.delete_document,
            KIND_VIDEO,
            video_id,
        )


@lru_cache(maxsize=1)
def get_index_notifier() -> IndexNotifier:
    """Return the process-wide index notifier."""
    return IndexNotifier(SearchIndexClient(), get_dispatcher())
