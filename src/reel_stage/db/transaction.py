"""Transaction helpers shared by the publication, reaction and counter services.

Every state transition runs inside :func:`transaction`: one session, one
database transaction, committed only if the block finishes and the caller's
:class:`Deadline` is still live. Anything else rolls back completely.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from reel_stage.core.errors import DeadlineExceeded, Internal, ReelStageError

logger = logging.getLogger(__name__)


class Deadline:
    """Caller-supplied time budget with an explicit cancellation switch.

    ``Deadline(None)`` never expires on its own but can still be cancelled.
    """

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._expires_at = (
            None if timeout_seconds is None else time.monotonic() + float(timeout_seconds)
        )
        self._cancelled = threading.Event()

    @classmethod
    def none(cls) -> Deadline:
        return cls(None)

    def cancel(self) -> None:
        """Signal cancellation; the next checkpoint raises."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def remaining(self) -> float | None:
        """Seconds left before expiry, or None for an open-ended deadline."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self, operation: str = "operation") -> None:
        """Raise :class:`DeadlineExceeded` once cancelled or past expiry."""
        if self._cancelled.is_set():
            raise DeadlineExceeded(f"{operation} was cancelled")
        if self._expires_at is not None and time.monotonic() >= self._expires_at:
            raise DeadlineExceeded(f"{operation} exceeded its deadline")


@contextmanager
def transaction(
    session_factory: sessionmaker[Session],
    *,
    operation: str,
    deadline: Deadline | None = None,
) -> Iterator[Session]:
    """Open a session and run the enclosed block as a single transaction.

    Domain errors raised inside the block propagate unchanged after rollback.
    SQLAlchemy failures are logged and surfaced as :class:`Internal`.
    """
    if deadline is not None:
        deadline.check(operation)

    session = session_factory()
    try:
        with session.begin():
            yield session
            if deadline is not None:
                deadline.check(operation)
    except ReelStageError:
        raise
    except SQLAlchemyError as exc:
        logger.error("%s: transaction rolled back: %s", operation, exc, exc_info=True)
        raise Internal(f"{operation} failed") from exc
    finally:
        session.close()


_CONFLICT_AWARE_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _dialect_name(session: Session) -> str:
    return session.get_bind().dialect.name


def insert_if_absent(session: Session, model: Any, values: Mapping[str, Any]) -> bool:
    """Insert a row unless it collides with a unique constraint.

    Returns True when a row was inserted, False when an existing row already
    satisfied the constraint. The database arbitrates concurrent callers, so
    exactly one of them observes True.

    Dialects without ``ON CONFLICT`` run the plain insert inside a savepoint;
    a unique violation rolls back only that savepoint.
    """
    conflict_aware = _CONFLICT_AWARE_INSERTS.get(_dialect_name(session))
    if conflict_aware is not None:
        stmt = conflict_aware(model).values(**values).on_conflict_do_nothing()
        return bool(session.execute(stmt).rowcount)

    try:
        with session.begin_nested():
            session.execute(insert(model).values(**values))
    except IntegrityError:
        logger.debug("insert into %s absorbed by unique constraint", model.__tablename__)
        return False
    return True
