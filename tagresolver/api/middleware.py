"""API middleware: CORS, request logging, and error handling.

Starlette runs middleware last-added-first, so in ``main.py``
``RequestLoggingMiddleware`` is added after ``ErrorHandlingMiddleware`` and
therefore logs the final status code, including structured error responses.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from tagresolver.api.schemas import ErrorResponse
from tagresolver.utils.errors import (
    ConfigurationError,
    PersistenceError,
    TaggerError,
    TrackNotFoundError,
)
from tagresolver.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_STATUS_BY_ERROR: dict[type[TaggerError], int] = {
    TrackNotFoundError: 404,
    ConfigurationError: 500,
    PersistenceError: 503,
}


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; all origins are allowed unless *allowed_origins* is given."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


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
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``TaggerError`` subclasses into JSON :class:`ErrorResponse` bodies.

    Stack traces stay in the server log; the client only sees the error
    class name and message.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except TaggerError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(
                status_code=_STATUS_BY_ERROR.get(type(exc), 500),
                content=body.model_dump(),
            )
