"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from reel_stage.core.security import Unauthenticated, decode_access_token
from reel_stage.core.settings import settings
from reel_stage.db.session import get_session_factory
from reel_stage.db.transaction import Deadline, transaction
from reel_stage.models import User
from reel_stage.services.background import get_dispatcher
from reel_stage.services.counters import CounterService
from reel_stage.services.follows import FollowService
from reel_stage.services.moderation import ModerationService
from reel_stage.services.publication import PublicationService
from reel_stage.services.reactions import ReactionService
from reel_stage.services.search_index import get_index_notifier
from reel_stage.services.storage import get_object_storage

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for the session factory services open transactions from
SessionFactoryDep = Annotated[sessionmaker[Session], Depends(get_session_factory)]


def _resolve_user(token: str, session_factory: sessionmaker[Session]) -> User:
    try:
        uid = decode_access_token(token)
    except Unauthenticated as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    # Short transaction: no session stays open while the endpoint runs.
    with transaction(session_factory, operation="authenticate") as session:
        user = session.get(User, uid)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    session_factory: SessionFactoryDep,
) -> User:
    """Get the current authenticated user from the bearer token.

    Raises:
        HTTPException: 401 if the token is invalid or the user does not exist.
    """
    return _resolve_user(credentials.credentials, session_factory)


def get_optional_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)
    ],
    session_factory: SessionFactoryDep,
) -> User | None:
    """Like :func:`get_current_user` but anonymous callers get ``None``."""
    if credentials is None:
        return None
    return _resolve_user(credentials.credentials, session_factory)


def get_admin_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    session_factory: SessionFactoryDep,
) -> User:
    user = _resolve_user(credentials.credentials, session_factory)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: admin role required",
        )
    return user


def get_deadline() -> Deadline:
    """Return a fresh deadline bounded by the configured request timeout."""
    return Deadline(settings.request_timeout_seconds)


def get_counter_service(session_factory: SessionFactoryDep) -> CounterService:
    return CounterService(session_factory)


def get_publication_service(
    session_factory: SessionFactoryDep,
    counters: Annotated[CounterService, Depends(get_counter_service)],
) -> PublicationService:
    return PublicationService(
        session_factory,
        get_object_storage(),
        get_index_notifier(),
        get_dispatcher(),
        counters,
    )


def get_reaction_service(
    session_factory: SessionFactoryDep,
    counters: Annotated[CounterService, Depends(get_counter_service)],
) -> ReactionService:
    return ReactionService(session_factory, counters)


def get_follow_service(session_factory: SessionFactoryDep) -> FollowService:
    return FollowService(session_factory)


def get_moderation_service(
    session_factory: SessionFactoryDep,
    counters: Annotated[CounterService, Depends(get_counter_service)],
) -> ModerationService:
    return ModerationService(session_factory, counters)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
AdminUserDep = Annotated[User, Depends(get_admin_user)]
DeadlineDep = Annotated[Deadline, Depends(get_deadline)]
CounterServiceDep = Annotated[CounterService, Depends(get_counter_service)]
PublicationServiceDep = Annotated[PublicationService, Depends(get_publication_service)]
ReactionServiceDep = Annotated[ReactionService, Depends(get_reaction_service)]
ModerationServiceDep = Annotated[ModerationService, Depends(get_moderation_service)]
FollowServiceDep = Annotated[FollowService, Depends(get_follow_service)]
