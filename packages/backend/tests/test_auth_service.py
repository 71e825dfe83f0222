"""AuthService tests — store-level edge cases the HTTP tests can't reach.

Learn: The race between two registrations is simulated by making the
pre-check miss while the conflicting row already exists; the unique
constraint then has to catch it.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from yarnlog.auth.jwt import TokenIssuer, TokenVerifier
from yarnlog.auth.password import hash_password
from yarnlog.db.models import User
from yarnlog.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from yarnlog.services.auth_service import AuthService

SECRET = "service-test-secret"


@pytest.fixture
def issuer():
    return TokenIssuer(secret=SECRET)


@pytest.fixture
def verifier():
    return TokenVerifier(secret=SECRET)


class _NoRows:
    def first(self):
        return None


@pytest.mark.asyncio
async def test_register_returns_user_and_token(db_session, issuer, verifier):
    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    user, token = await svc.register("knitter", "k@test.com", "secret1")
    assert user.id is not None
    assert verifier.verify(token) == user.id


@pytest.mark.asyncio
async def test_register_short_password_touches_nothing(db_session, issuer, monkeypatch):
    """The length rule is checked before any store access."""

    async def fail(*args, **kwargs):
        raise AssertionError("store must not be queried")

    monkeypatch.setattr(AsyncSession, "execute", fail)
    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    with pytest.raises(ValidationError) as exc:
        await svc.register("knitter", "k@test.com", "12345")
    assert exc.value.message == "Password must be at least 6 characters"


@pytest.mark.asyncio
async def test_register_race_surfaces_as_conflict(db_session, session_factory, issuer, monkeypatch):
    """A uniqueness violation from the store is the same ConflictError."""
    async with session_factory() as other:
        other.add(User(username="winner", email="race@test.com",
                       password_hash=hash_password("secret1", rounds=4)))
        await other.commit()

    async def missed_precheck(self, *args, **kwargs):
        return _NoRows()

    monkeypatch.setattr(AsyncSession, "execute", missed_precheck)

    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    with pytest.raises(ConflictError) as exc:
        await svc.register("loser", "race@test.com", "secret1")
    assert exc.value.message == "Email or username already exists"

    monkeypatch.undo()
    count = await db_session.scalar(
        select(func.count()).select_from(User).where(User.email == "race@test.com")
    )
    assert count == 1


@pytest.mark.asyncio
async def test_login_store_failure_is_server_error(db_session, issuer, monkeypatch):
    async def broken(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(AsyncSession, "execute", broken)

    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    with pytest.raises(ServerError) as exc:
        await svc.login("k@test.com", "secret1")
    assert exc.value.status_code == 500
    assert "connection lost" not in exc.value.message


@pytest.mark.asyncio
async def test_login_unknown_email_and_wrong_password_match(db_session, issuer):
    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    await svc.register("knitter", "k@test.com", "secret1")

    with pytest.raises(AuthenticationError) as wrong:
        await svc.login("k@test.com", "not-it")
    with pytest.raises(AuthenticationError) as unknown:
        await svc.login("nobody@test.com", "not-it")
    assert wrong.value.message == unknown.value.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_get_profile_missing_user(db_session, issuer):
    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    with pytest.raises(NotFoundError):
        await svc.get_profile(4242)
