"""Translate service-layer errors into JSON HTTP responses."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from community_service.core.errors import CommunityError
from community_service.db.time import utcnow
from community_service.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

SERVER_ERROR = 500


async def community_error_handler(request: Request, exc: CommunityError) -> JSONResponse:
    """Render a `CommunityError` with its status code and stable error code."""
    if exc.status_code >= SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    body = ErrorResponse(code=exc.code, message=exc.message, timestamp=utcnow())
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the service error handlers to `app`."""
    app.add_exception_handler(CommunityError, community_error_handler)
