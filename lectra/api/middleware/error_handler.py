"""
Global error handling middleware for the FastAPI application.

Catches LectraError subclasses, request validation errors, and unhandled
exceptions, converting them into a consistent JSON envelope::

    {"status": "fail" | "error", "message": ..., "code": ..., "timestamp": ...}
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lectra.core.exceptions import LectraError, RateLimitExceededError

logger = logging.getLogger(__name__)


def error_body(status: str, message: str, code: str, timestamp: str | None = None) -> dict:
    """Build the JSON error envelope."""
    return {
        "status": status,
        "message": message,
        "code": code,
        "timestamp": timestamp or datetime.now(UTC).isoformat(),
    }


def _format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers four handlers in priority order:
    1. ``LectraError``: maps domain errors to structured JSON responses.
    2. ``RequestValidationError``: malformed body/params (400 ``fail``).
    3. ``HTTPException``: framework errors such as unknown routes.
    4. ``Exception``: catch-all for unexpected server errors (500).

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(LectraError)
    async def lectra_error_handler(_request: Request, exc: LectraError) -> JSONResponse:
        """Convert domain-specific errors into a JSON error envelope."""
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status, exc.detail, exc.code, exc.timestamp),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors (malformed body/params)."""
        return JSONResponse(
            status_code=400,
            content=error_body("fail", _format_validation_error(exc), "VALIDATION_ERROR"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Wrap framework HTTP errors (404 route not found, 405) in the envelope."""
        status = "fail" if exc.status_code < 500 else "error"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(status, str(exc.detail), "HTTP_ERROR"),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler; prevents stack traces from leaking to clients."""
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=error_body("error", "Internal server error", "INTERNAL_ERROR"),
        )
