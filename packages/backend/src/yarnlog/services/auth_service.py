"""Auth service — registration, login, and profile lookup.

Learn: Service layer separates business logic from HTTP routing. Routes
parse the body and call these methods; everything here raises errors from
yarnlog.errors, which main.py renders as `{"error": ...}` responses.

Registration has no explicit transaction around its pre-check and insert.
Two concurrent registrations for the same email can both pass the check;
the unique constraint then rejects one, and that IntegrityError is
reported as the same ConflictError the pre-check would have produced.
"""

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from yarnlog.auth.jwt import TokenIssuer
from yarnlog.auth.password import MIN_PASSWORD_LENGTH, hash_password, verify_password
from yarnlog.db.models import User
from yarnlog.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ServerError,
    ValidationError,
)

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid credentials"
DUPLICATE_USER = "Email or username already exists"


class AuthService:
    """Business logic for user identity."""

    def __init__(self, db: AsyncSession, issuer: TokenIssuer, bcrypt_rounds: int = 12):
        self.db = db
        self.issuer = issuer
        self.bcrypt_rounds = bcrypt_rounds

    # ─── Register ───────────────────────────────────────

    async def register(self, username: str, email: str, password: str) -> tuple[User, str]:
        """Create a user and return it with a fresh access token."""
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        try:
            result = await self.db.execute(
                select(User.id).where(
                    or_(User.email == email, User.username == username)
                )
            )
            if result.first() is not None:
                logger.info("auth.register_conflict", username=username)
                raise ConflictError(DUPLICATE_USER)

            user = User(
                username=username,
                email=email,
                password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            )
            self.db.add(user)
            await self.db.flush()
            token = self.issuer.issue(user.id)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("auth.register_conflict", username=username, race=True)
            raise ConflictError(DUPLICATE_USER)
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("auth.register_failed")
            raise ServerError()

        logger.info("auth.registered", user_id=user.id)
        return user, token

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and return the user with a fresh access token.

        Unknown email and wrong password raise the same error after the
        same amount of bcrypt work.
        """
        try:
            result = await self.db.execute(select(User).where(User.email == email))
            user = result.scalars().first()
        except SQLAlchemyError:
            logger.exception("auth.login_lookup_failed")
            raise ServerError()

        password_hash = user.password_hash if user else None
        if not verify_password(password, password_hash, rounds=self.bcrypt_rounds):
            logger.info("auth.login_failed")
            raise AuthenticationError(INVALID_CREDENTIALS)

        token = self.issuer.issue(user.id)
        logger.info("auth.logged_in", user_id=user.id)
        return user, token

    # ─── Profile ────────────────────────────────────────

    async def get_profile(self, user_id: int) -> User:
        try:
            user = await self.db.get(User, user_id)
        except SQLAlchemyError:
            logger.exception("auth.profile_lookup_failed")
            raise ServerError()
        if user is None:
            raise NotFoundError("User not found")
        return user
