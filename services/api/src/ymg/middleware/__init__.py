"""Middleware registration."""

from fastapi import FastAPI

from ymg.config import Settings
from ymg.middleware.cors import setup_cors
from ymg.middleware.error_handler import setup_error_handlers
from ymg.middleware.logging import RequestIdMiddleware, setup_logging


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS (added last) is
    outermost and also wraps error responses.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
