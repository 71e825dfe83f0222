"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (aiosqlite). StaticPool
   keeps one connection alive so every session sees the same database.
2. The app's get_db dependency is overridden to hand out sessions from
   that engine, one per request, the same lifecycle as production.
3. Auth is NOT overridden. Every protected request in these tests goes
   through the real bearer-token pipeline.

The environment is set before yarnlog is imported: Settings refuses to
load without a JWT secret.
"""

import os

os.environ.setdefault("YARNLOG_JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("YARNLOG_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("YARNLOG_BCRYPT_ROUNDS", "4")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from yarnlog.db.engine import get_db, init_models  # noqa: E402
from yarnlog.main import app  # noqa: E402


@pytest_asyncio.fixture()
async def db_engine():
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for service-level tests and for inspecting rows."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with the app's get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def register_user(client):
    """Factory: register a user through the API, return (body, headers)."""

    async def _register(username: str, email: str, password: str = "secret1"):
        r = await client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return body, {"Authorization": f"Bearer {body['token']}"}

    return _register
