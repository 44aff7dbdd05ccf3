"""Shared fixtures.

Testing Strategy:
1. Database: SQLite in memory through aiosqlite, fresh schema per test
2. Authentication: single-user mode by default; session-mode tests flip
   AUTH_PROVIDER on the cached settings
3. HTTP: httpx AsyncClient over ASGITransport, no server process
"""

import os


# Must be set before questlog is imported: settings and the engine are built at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTH_PROVIDER"] = "none"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH_SECRET_KEY"] = "test-secret-key"

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import questlog.database.init  # noqa: F401
from questlog.config.settings import Settings, get_settings
from questlog.database.base import Base
from questlog.database.engine import create_app_engine
from questlog.database.session import get_db_session
from questlog.main import app
from questlog.users.models import User
from questlog.users.service import upsert_user


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with every table."""
    engine = create_app_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    """A signed-up user for service-level tests."""
    return await upsert_user(db_session, "test-user", name="Tester", email="tester@example.com", login_method="test")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await upsert_user(db_session, "other-user", name="Someone Else", login_method="test")


@pytest.fixture
def settings() -> Settings:
    """The cached settings. Change fields with monkeypatch.setattr so they are restored."""
    return get_settings()


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database."""

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()
