"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers (or on a whole
router via include_router(dependencies=...)) to verify the bearer token
and hand the caller's identity to the handler.

Two distinct failures, never conflated:
1. No credential at all             → AuthenticationError (401)
2. Credential present but rejected  → AuthorizationError  (403)
   (wrong scheme and extra parts count as present but malformed)
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from yarnlog.auth.jwt import TokenError, TokenIssuer, TokenVerifier
from yarnlog.errors import AuthenticationError, AuthorizationError

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated user making the request.

    Learn: Handlers receive this as an explicit argument instead of reading
    a user id stuffed onto the request object. Every owner-scoped query
    takes its user_id from here.
    """

    def __init__(self, user_id: int):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id})"


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the credential part of an Authorization header, or None.

    Only an absent header or one without a second element means "no
    credential". `Basic abc` or `Bearer a b` still carry one, and it is
    rejected as invalid rather than treated as missing.
    """
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) < 2:
        return None
    return parts[1]


def is_bearer_header(authorization: str) -> bool:
    """True for exactly `Bearer <token>` (scheme is case-insensitive)."""
    parts = authorization.split()
    return len(parts) == 2 and parts[0].lower() == "bearer"


async def get_current_identity(
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> CurrentIdentity:
    """Verify the bearer token and return the caller's identity."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthenticationError("Access token required")

    try:
        if not is_bearer_header(authorization):
            raise TokenError("Malformed authorization header")
        user_id = verifier.verify(token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=str(e))
        raise AuthorizationError("Invalid or expired token")

    structlog.contextvars.bind_contextvars(user_id=user_id)
    return CurrentIdentity(user_id=user_id)


async def get_current_user_id(
    identity: CurrentIdentity = Depends(get_current_identity),
) -> int:
    """Shorthand dependency: just the verified user id."""
    return identity.user_id
