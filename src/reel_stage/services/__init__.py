# src/reel_stage/services/__init__.py
"""Business logic services for Reel Stage."""

from .background import BackgroundDispatcher
from .counters import CounterService
from .follows import FollowService
from .moderation import ModerationService
from .publication import PublicationService
from .reactions import ReactionService

__all__ = [
    "BackgroundDispatcher",
    "CounterService",
    "FollowService",
    "ModerationService",
    "PublicationService",
    "ReactionService",
]
