"""CORS for the game client and the admin dashboard."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ymg.config import Settings

# Headers the hosted client library sends with every call.
_CLIENT_HEADERS = ["authorization", "x-client-info", "apikey", "content-type", "x-request-id"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow configured web origins to call the storage and admin endpoints."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=_CLIENT_HEADERS,
        expose_headers=["X-Request-Id"],
        max_age=86400,
    )
