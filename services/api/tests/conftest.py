"""Shared test fixtures.

The hosted database is replaced by a SQLite file (aiosqlite) with the full
schema created from the ORM metadata, and the local staging store by the
in-memory implementation. The app is driven through httpx without running
its lifespan; its state and database dependency are injected here.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ymg.auth.jwt import create_access_token
from ymg.database import build_engine, build_session_factory
from ymg.db.base import Base
from ymg.db.models import UserProfileRow
from ymg.dependencies import get_db
from ymg.main import create_app
from ymg.storage import HostedBackend, InMemoryLocalStore, StorageSelector, StorageType


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite engine with every table created."""
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ymg_test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for test setup and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def hosted(engine: AsyncEngine) -> HostedBackend:
    return HostedBackend(engine=engine)


@pytest.fixture
def local_store() -> InMemoryLocalStore:
    return InMemoryLocalStore()


@pytest.fixture
def selector(hosted: HostedBackend) -> StorageSelector:
    """Selector with hosted storage active, reusing the test backend."""
    return StorageSelector(lambda: hosted, StorageType.HOSTED)


@pytest.fixture
def app(
    session_factory: async_sessionmaker[AsyncSession],
    selector: StorageSelector,
    local_store: InMemoryLocalStore,
) -> FastAPI:
    application = create_app()
    application.state.storage = selector
    application.state.local_store = local_store

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _get_test_db
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def bearer(user_id: str, **kwargs: object) -> dict[str, str]:
    """Authorization header carrying a freshly minted access token."""
    return {"Authorization": f"Bearer {create_access_token(user_id, **kwargs)}"}


async def insert_profile(
    db: AsyncSession,
    user_id: str,
    wallet_address: str | None = None,
    roles: list[str] | None = None,
    username: str | None = None,
) -> UserProfileRow:
    """Insert a profile row directly, including roles (never client-writable)."""
    now = datetime.now(timezone.utc)
    row = UserProfileRow(
        id=user_id,
        email=f"{user_id}@example.com",
        username=username,
        wallet_address=wallet_address,
        roles=roles or [],
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    await db.commit()
    return row


@pytest.fixture
def auth_header():
    """Factory for bearer headers: ``auth_header("user-1")``."""
    return bearer


@pytest.fixture
def make_profile(db_session: AsyncSession):
    """Factory inserting profile rows through the test session."""

    async def _make(user_id: str, **kwargs: object) -> UserProfileRow:
        return await insert_profile(db_session, user_id, **kwargs)

    return _make
