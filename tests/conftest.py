# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from datetime import timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("SECRET_KEY", "reel-stage-test-secret")
os.environ.setdefault("PUBLIC_ASSET_BASE_URL", "https://cdn.test")

from reel_stage.api.v1 import dependencies
from reel_stage.core.security import create_access_token
from reel_stage.db.session import build_engine, create_tables, get_session_factory
from reel_stage.db.time import utcnow
from reel_stage.db.transaction import transaction
from reel_stage.main import app as fastapi_app
from reel_stage.models import User, Video
from reel_stage.models.user import ROLE_ADMIN, ROLE_USER
from reel_stage.schemas.video import VideoMetadata
from reel_stage.services.background import BackgroundDispatcher
from reel_stage.services.counters import CounterService
from reel_stage.services.follows import FollowService
from reel_stage.services.moderation import ModerationService
from reel_stage.services.publication import PublicationService
from reel_stage.services.reactions import ReactionService
from reel_stage.services.search_index import IndexNotifier, SearchIndexError
from reel_stage.services.storage import StorageError, UploadLocation


class FakeObjectStorage:
    """In-memory object store keyed by object path."""

    def __init__(self) -> None:
        self.objects: set[str] = set()
        self.deleted: list[str] = []
        self.fail_presign = False
        self.fail_exists = False
        self.fail_delete = False

    def put(self, path: str) -> None:
        self.objects.add(path)

    def request_upload_location(self, path: str) -> UploadLocation:
        if self.fail_presign:
            raise StorageError("presign unavailable")
        return UploadLocation(
            path=path,
            url=f"https://storage.test/{path}?signature=test",
            expires_at=utcnow() + timedelta(minutes=20),
        )

    def exists(self, path: str) -> bool:
        if self.fail_exists:
            raise StorageError("storage unavailable")
        return path in self.objects

    def delete(self, path: str) -> None:
        if self.fail_delete:
            raise StorageError("delete refused")
        self.deleted.append(path)
        self.objects.discard(path)


class FakeSearchIndex:
    """Records index traffic instead of talking HTTP."""

    def __init__(self) -> None:
        self.documents: dict[tuple[str, str], dict[str, Any]] = {}
        self.deleted: list[tuple[str, str]] = []
        self.fail = False

    def upsert_document(self, kind: str, doc_id: str, fields: Any) -> None:
        if self.fail:
            raise SearchIndexError("index unavailable")
        self.documents[(kind, doc_id)] = dict(fields)

    def delete_document(self, kind: str, doc_id: str) -> None:
        if self.fail:
            raise SearchIndexError("index unavailable")
        self.documents.pop((kind, doc_id), None)
        self.deleted.append((kind, doc_id))


@pytest.fixture()
def engine(tmp_path) -> Iterator[Engine]:
    engine = build_engine(f"sqlite:///{tmp_path / 'reel.db'}")
    create_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture()
def search_index() -> FakeSearchIndex:
    return FakeSearchIndex()


@pytest.fixture()
def dispatcher() -> Iterator[BackgroundDispatcher]:
    dispatcher = BackgroundDispatcher(max_workers=2)
    try:
        yield dispatcher
    finally:
        dispatcher.shutdown(wait_for_tasks=True)


@pytest.fixture()
def counters(session_factory: sessionmaker[Session]) -> CounterService:
    return CounterService(session_factory)


@pytest.fixture()
def publication(
    session_factory: sessionmaker[Session],
    storage: FakeObjectStorage,
    search_index: FakeSearchIndex,
    dispatcher: BackgroundDispatcher,
    counters: CounterService,
) -> PublicationService:
    notifier = IndexNotifier(search_index, dispatcher)
    return PublicationService(session_factory, storage, notifier, dispatcher, counters)


@pytest.fixture()
def reactions(
    session_factory: sessionmaker[Session], counters: CounterService
) -> ReactionService:
    return ReactionService(session_factory, counters)


@pytest.fixture()
def follows(session_factory: sessionmaker[Session]) -> FollowService:
    return FollowService(session_factory)


@pytest.fixture()
def moderation(
    session_factory: sessionmaker[Session], counters: CounterService
) -> ModerationService:
    return ModerationService(session_factory, counters)


@pytest.fixture()
def make_user(session_factory: sessionmaker[Session]) -> Callable[..., User]:
    def _make(uid: str, username: str | None = None, role: str = ROLE_USER) -> User:
        user = User(uid=uid, username=username or uid, role=role, total_videos=0)
        with transaction(session_factory, operation="create test user") as session:
            session.add(user)
        return user

    return _make


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("bob")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("root", role=ROLE_ADMIN)


@pytest.fixture()
def publish_video(
    publication: PublicationService,
    storage: FakeObjectStorage,
    dispatcher: BackgroundDispatcher,
) -> Callable[..., Video]:
    """Run the whole staged -> uploaded -> acknowledged flow for an owner."""

    def _publish(owner_uid: str, title: str = "clip") -> Video:
        slot = publication.begin_upload(owner_uid, VideoMetadata(video_title=title))
        for location in slot.locations.values():
            storage.put(location.path)
        video = publication.acknowledge(slot.video_id, owner_uid)
        dispatcher.drain()
        return video

    return _publish


@pytest.fixture()
def app(
    session_factory: sessionmaker[Session],
    publication: PublicationService,
    reactions: ReactionService,
    moderation: ModerationService,
    follows: FollowService,
    counters: CounterService,
) -> Iterator[FastAPI]:
    overrides = {
        get_session_factory: lambda: session_factory,
        dependencies.get_publication_service: lambda: publication,
        dependencies.get_reaction_service: lambda: reactions,
        dependencies.get_moderation_service: lambda: moderation,
        dependencies.get_follow_service: lambda: follows,
        dependencies.get_counter_service: lambda: counters,
    }
    fastapi_app.dependency_overrides.update(overrides)
    try:
        yield fastapi_app
    finally:
        for dependency in overrides:
            fastapi_app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app, base_url="http://test")


@pytest.fixture()
def headers_for() -> Callable[[str], dict[str, str]]:
    def _headers(uid: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(uid)}"}

    return _headers


@pytest.fixture()
def alice_headers(alice: User, headers_for: Callable[[str], dict[str, str]]) -> dict[str, str]:
    return headers_for(alice.uid)


@pytest.fixture()
def bob_headers(bob: User, headers_for: Callable[[str], dict[str, str]]) -> dict[str, str]:
    return headers_for(bob.uid)


@pytest.fixture()
def admin_headers(admin: User, headers_for: Callable[[str], dict[str, str]]) -> dict[str, str]:
    return headers_for(admin.uid)
