"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The module-level engine is built from the default settings. create_app()
builds its own engine when handed a Settings with a different database_url
and parks it, with its session factory, on app.state; get_db reads from there.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from yarnlog.config import settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an engine. SQLite has no connection pool to size."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    # Connection pool: min 5, max 20 connections.
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=15,
        pool_pre_ping=True,
    )


def build_session_factory(target: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(target, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory — each request gets its own session.
async_session_factory = build_session_factory(engine)


async def get_db(request: Request) -> AsyncSession:
    """FastAPI dependency — yields a session per request from the app's engine."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models(target: AsyncEngine | None = None) -> None:
    """Create all tables that don't exist yet (dev, tests, `yarnlog init-db`)."""
    from yarnlog.db.models import Base

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
