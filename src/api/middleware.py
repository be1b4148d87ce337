"""API middleware: CORS, request logging and error handling.

Starlette middleware is a stack (last added, first executed):

    app.add_middleware(ErrorHandlingMiddleware)    # inner
    app.add_middleware(RequestLoggingMiddleware)   # outer

so the request log records the final status code even when an
``UbiqitumError`` was converted into a JSON error body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import BadInputError, UbiqitumError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

RETRY_AFTER_SECONDS = 30


def error_response(exc: UbiqitumError) -> JSONResponse:
    """Render *exc* as an ``ErrorResponse`` with its own status code."""
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        retryable=exc.retryable,
    )
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=headers)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; defaults to ``["*"]`` for development.

    Browsers call ``POST /api/v1/kpi`` directly from the marketing site, so
    production deployments list that site's origin here.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Wildcard origins cannot be combined with credentials.
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["ETag", "Last-Modified", "X-Cache-Status"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                cache_status=response.headers.get("X-Cache-Status") if response else None,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``UbiqitumError`` subclasses into structured JSON errors.

    Status codes come from the exception class (400 bad input, 502 invalid
    upstream payload, 503 upstream failure).  Stack traces stay in the
    server log and are never sent to the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except UbiqitumError as exc:
            log = _logger.warning if exc.status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return error_response(exc)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # A missing brand_url or a malformed body is bad input like any other.
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{location}: {first.get('msg', 'invalid request')}" if location else first.get("msg", "invalid request body")
    _logger.warning("request_rejected", path=str(request.url.path), detail=detail)
    return error_response(BadInputError(message=detail))


def register_exception_handlers(app: FastAPI) -> None:
    """Route request-validation failures through the ``BadInputError`` shape."""
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
