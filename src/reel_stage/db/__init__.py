# src/reel_stage/db/__init__.py
"""Database configuration and utilities."""

from .session import SessionLocal, get_session_factory
from .transaction import Deadline, insert_if_absent, transaction

__all__ = [
    "Deadline",
    "SessionLocal",
    "get_session_factory",
    "insert_if_absent",
    "transaction",
]
