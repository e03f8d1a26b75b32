# src/reel_stage/main.py
"""Main entry point for the Reel Stage application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from reel_stage.api.errors import register_error_handlers
from reel_stage.api.v1 import admin_router, social_router, videos_router
from reel_stage.core.settings import settings
from reel_stage.services.background import get_dispatcher

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Video sharing backend: publication, reactions and counters",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_error_handlers(app)

# Include API routers
app.include_router(videos_router, prefix="/api/v1")
app.include_router(social_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.on_event("shutdown")
def on_shutdown() -> None:
    logger.info("draining background tasks")
    get_dispatcher().shutdown(wait_for_tasks=True)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("reel_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
