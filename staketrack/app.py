"""
FastAPI application entry point for the StakeTrack API.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from staketrack.config import get_settings
from staketrack.logging_utils import configure_logging
from staketrack.routes import router
from staketrack.version import __version__
from staketrack_shared.errors import (
    AuthError,
    ImportFormatError,
    LimitExceededError,
    NotFoundError,
    StakeTrackError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first matching class wins.
_ERROR_STATUS = (
    (NotFoundError, 404),
    (LimitExceededError, 409),
    (ImportFormatError, 400),
    (AuthError, 401),
)


async def _domain_error_handler(request: Request, exc: StakeTrackError) -> JSONResponse:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            break
    else:
        status_code = 400
    if status_code != 404:
        logger.info("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.missing_firebase_keys:
        logger.warning(
            "Firebase configuration incomplete, missing: %s",
            ", ".join(settings.missing_firebase_keys),
        )
    app = FastAPI(title="StakeTrack API", version=__version__)
    app.add_exception_handler(StakeTrackError, _domain_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
