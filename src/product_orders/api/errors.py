"""Map lifecycle errors to HTTP responses.

Every error body has the shape ``{"detail": str, "offending_ids": [int]}``.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from product_orders.domain.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    LifecycleError,
    NotFoundError,
)

logger = structlog.get_logger()

STATUS_CODES: dict[type[LifecycleError], int] = {
    NotFoundError: 404,
    BadRequestError: 400,
    ForbiddenError: 403,
    ConflictError: 409,
}


def status_code_for(exc: LifecycleError) -> int:
    """Return the HTTP status for *exc*, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


def register_error_handlers(app: FastAPI) -> None:
    """Install the ``LifecycleError`` handler on *app*."""

    @app.exception_handler(LifecycleError)
    async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
        code = status_code_for(exc)
        logger.info(
            "lifecycle_error_response",
            path=request.url.path,
            status_code=code,
            error=exc.message,
        )
        return JSONResponse(
            status_code=code,
            content={"detail": exc.message, "offending_ids": exc.offending_ids},
        )
