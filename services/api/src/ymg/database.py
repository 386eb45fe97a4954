"""Async SQLAlchemy engine and session management for the hosted database."""

from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(url: str, pool_size: int = 10, max_overflow: int = 5) -> AsyncEngine:
    """Create an async engine for the hosted Postgres (or a local SQLite file in dev/tests)."""
    if make_url(url).get_backend_name() == "sqlite":
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        echo=False,
        # The hosted pooler runs in transaction mode, prepared statements break there.
        connect_args={"statement_cache_size": 0},
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory shared by the endpoints and the hosted backend."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(url: str, pool_size: int = 10, max_overflow: int = 5) -> None:
    """Initialize the module-level engine used by the admin endpoints."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = build_engine(url, pool_size, max_overflow)
    _session_factory = build_session_factory(_engine)


async def close_db() -> None:
    """Dispose of the database engine."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    async with _session_factory() as session:
        yield session
