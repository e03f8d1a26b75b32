# src/reel_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .social import router as social_router
from .videos import router as videos_router

__all__ = [
    "admin_router",
    "social_router",
    "videos_router",
]
