"""Settings and app-factory tests.

Learn: The signing secret is loaded once into Settings and handed to the
issuer/verifier by create_app(). A missing secret stops the process at
startup; two apps built with different secrets don't accept each other's
tokens.
"""

import pydantic
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from yarnlog.config import Settings
from yarnlog.db.engine import get_db, init_models
from yarnlog.db.models import User
from yarnlog.main import create_app


def test_missing_secret_fails_at_load():
    with pytest.raises(pydantic.ValidationError, match="YARNLOG_JWT_SECRET"):
        Settings(jwt_secret="")


def test_placeholder_secret_rejected_outside_development():
    with pytest.raises(pydantic.ValidationError):
        Settings(jwt_secret="change-me", environment="production")


def test_placeholder_secret_allowed_in_development():
    s = Settings(jwt_secret="change-me", environment="development")
    assert s.jwt_secret == "change-me"


def test_bcrypt_rounds_bounds():
    with pytest.raises(pydantic.ValidationError):
        Settings(jwt_secret="x" * 32, bcrypt_rounds=2)


def test_create_app_builds_issuer_from_settings():
    settings = Settings(jwt_secret="factory-secret", access_token_expire_minutes=5)
    app = create_app(settings)
    assert app.state.settings is settings
    assert app.state.token_issuer.expires_in.total_seconds() == 300
    token = app.state.token_issuer.issue(9)
    assert app.state.token_verifier.verify(token) == 9


def test_create_app_reuses_default_engine():
    from yarnlog.db import engine as db

    app = create_app(Settings(jwt_secret="factory-secret"))
    assert app.state.engine is db.engine
    assert app.state.session_factory is db.async_session_factory


@pytest.mark.asyncio
async def test_create_app_uses_its_own_database(tmp_path):
    """Requests hit the database named in the app's Settings, not the default."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'other.db'}"
    app = create_app(Settings(jwt_secret="factory-secret", database_url=url))
    assert str(app.state.engine.url) == url

    await init_models(app.state.engine)
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            r = await ac.post(
                "/api/auth/register",
                json={"username": "elsewhere", "email": "e@test.com", "password": "secret1"},
            )
        assert r.status_code == 201

        async with app.state.session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(User))
        assert count == 1
    finally:
        await app.state.engine.dispose()


@pytest.mark.asyncio
async def test_token_from_other_secret_is_rejected(session_factory):
    """An app only accepts tokens signed with its own secret."""
    issuing_app = create_app(Settings(jwt_secret="first-secret"))
    checking_app = create_app(Settings(jwt_secret="second-secret"))

    async def override_get_db():
        async with session_factory() as session:
            yield session

    checking_app.dependency_overrides[get_db] = override_get_db
    token = issuing_app.state.token_issuer.issue(1)

    transport = ASGITransport(app=checking_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/api/projects", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
