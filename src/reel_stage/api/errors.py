"""Translate domain errors raised by services into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reel_stage.core.errors import ReelStageError

logger = logging.getLogger(__name__)


async def reel_stage_error_handler(request: Request, exc: ReelStageError) -> JSONResponse:
    """Render ``exc`` as ``{"detail": ...}`` with its mapped status code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    else:
        logger.debug("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReelStageError, reel_stage_error_handler)  # type: ignore[arg-type]
