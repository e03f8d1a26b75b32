"""Database session configuration."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from reel_stage.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import reel_stage.models  # noqa: E402,F401


def configure_sqlite(engine: Engine) -> Engine:
    """Make SQLite honour foreign keys and serialize writers.

    pysqlite defers BEGIN until the first DML statement, which lets two
    read-check-write transactions interleave. Taking the write lock up front
    with BEGIN IMMEDIATE gives SQLite the row-lock semantics PostgreSQL
    provides natively.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection: Any) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for ``url`` with dialect-specific tuning applied."""
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=echo,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.sqlite_busy_timeout_seconds,
            },
        )
        return configure_sqlite(engine)
    return create_engine(url, pool_pre_ping=True, echo=echo)


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_session_factory() -> sessionmaker[Session]:
    """Return the session factory services open their transactions from."""
    return SessionLocal


def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)

