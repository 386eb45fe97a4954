"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ymg.admin.router import router as admin_router
from ymg.config import get_settings
from ymg.database import close_db, init_db
from ymg.health.router import router as health_router
from ymg.middleware import setup_middleware
from ymg.storage import HostedBackend, RedisLocalStore, StorageSelector, StorageType
from ymg.storage.router import router as storage_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url, settings.db_pool_size, settings.db_max_overflow)

    local_store = RedisLocalStore.from_url(settings.redis_url, settings.local_key_prefix)
    selector = StorageSelector(
        lambda: HostedBackend.from_settings(settings),
        StorageType(settings.storage_backend),
    )
    app.state.local_store = local_store
    app.state.storage = selector

    yield

    await selector.close()
    await local_store.close()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Yo Mama Game API",
        description="Storage and admin backend for the Yo Mama clicker game",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(storage_router)
    app.include_router(admin_router)

    return app


app = create_app()
