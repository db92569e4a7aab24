"""
Global error handling for the FastAPI application.

Catches ToneCoachError subclasses, Pydantic validation errors, and
unhandled exceptions, converting them into a consistent JSON envelope
that the recording client reads the ``detail`` of.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.exceptions import ToneCoachError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, detail: str, code: str, timestamp: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    1. ``ToneCoachError`` — domain errors keep their own status and code.
    2. ``RequestValidationError`` — malformed body/params (422).
    3. ``Exception`` — anything else becomes a generic 500.
    """

    @app.exception_handler(ToneCoachError)
    async def tonecoach_error_handler(_request: Request, exc: ToneCoachError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.code, exc.detail)
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _envelope(422, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        # Stack traces go to the log, never to the client
        logger.exception("Unhandled error: %s", exc)
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
