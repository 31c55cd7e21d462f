"""Global exception handlers mapping errors onto the failure envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..domain.errors import DmatAccountError
from .envelopes import failure_response

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred."


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(DmatAccountError)
    async def dmat_account_error_handler(request: Request, exc: DmatAccountError) -> JSONResponse:
        logger.warning(
            "request rejected: %s",
            exc.message,
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled exception on %s", request.url.path, exc_info=exc)
        return failure_response([INTERNAL_ERROR_MESSAGE], status.HTTP_500_INTERNAL_SERVER_ERROR)
