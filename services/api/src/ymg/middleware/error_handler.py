"""Global error handlers: consistent JSON error responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ymg.storage.errors import InvalidOperationError, NotFoundError, StorageError

logger = structlog.get_logger()


class EndpointError(Exception):
    """Error rendered as ``{"error": ..., "details": ...}`` with the given status."""

    def __init__(self, status_code: int, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details

    def to_content(self) -> dict[str, str]:
        content = {"error": self.error}
        if self.details:
            content["details"] = self.details
        return content


def _storage_status(exc: StorageError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidOperationError):
        return 400
    return 502


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(EndpointError)
    async def endpoint_error_handler(_request: Request, exc: EndpointError) -> JSONResponse:
        """Handle endpoint errors with the {error, details} shape."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        """Map storage failures onto 4xx/5xx without leaking backend detail on 5xx."""
        status = _storage_status(exc)
        if status >= 500:
            logger.error("storage_error", path=request.url.path, error=str(exc))
            return JSONResponse(status_code=status, content={"error": "Storage backend error"})
        return JSONResponse(status_code=status, content={"error": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent JSON format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle validation errors with consistent JSON format."""
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
