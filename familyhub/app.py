"""
FastAPI application entry point for the family hub service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from familyhub.config import get_settings
from familyhub.errors import HubError, UpstreamFailure
from familyhub.routes import router

logger = logging.getLogger(__name__)


async def handle_hub_error(request: Request, exc: HubError) -> JSONResponse:
    if isinstance(exc, UpstreamFailure):
        # The cause stays in the server log.
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc
        )
        return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="Family Hub Backend (FastAPI)", version="0.1.0")
    app.add_exception_handler(HubError, handle_hub_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
