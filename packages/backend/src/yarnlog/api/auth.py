"""Auth API — registration, login, current user.

Learn: Routes for user authentication:
- POST /auth/register → create an account, returns token + public user
- POST /auth/login → email/password → token + public user
- GET /auth/me → the verified caller's profile (protected)

Register and login are open. /me depends on get_current_user_id, which
verifies the token like every other protected route.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from yarnlog.auth.dependencies import get_current_user_id, get_token_issuer
from yarnlog.auth.jwt import TokenIssuer
from yarnlog.db.engine import get_db
from yarnlog.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    UserProfile,
    UserPublic,
)
from yarnlog.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _svc(
    request: Request,
    db: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    return AuthService(
        db, issuer, bcrypt_rounds=request.app.state.settings.bcrypt_rounds
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new user account."""
    user, token = await svc.register(
        username=body.username, email=body.email, password=body.password
    )
    return AuthResponse(token=token, user=UserPublic.model_validate(user))


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → access token."""
    user, token = await svc.login(email=body.email, password=body.password)
    return AuthResponse(token=token, user=UserPublic.model_validate(user))


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    user_id: int = Depends(get_current_user_id),
    svc: AuthService = Depends(_svc),
):
    """Get the current authenticated user's public fields."""
    user = await svc.get_profile(user_id)
    return ProfileResponse(user=UserProfile.model_validate(user))
