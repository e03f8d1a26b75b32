# src/reel_stage/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import admin_router, social_router, videos_router

__all__ = [
    "admin_router",
    "social_router",
    "videos_router",
]
