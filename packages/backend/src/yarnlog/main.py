"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The token issuer and verifier are built here, once, from the
Settings passed in, and parked on app.state for the auth dependencies.
Lifespan manages startup/shutdown of the database engine.

Every error leaves the app as `{"error": message}`:
- YarnlogError subclasses carry their own status and public message
- request-body validation failures become 400s
- anything else is logged with its traceback and becomes a generic 500
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from yarnlog import __version__
from yarnlog.api import api_router
from yarnlog.auth.jwt import TokenIssuer, TokenVerifier
from yarnlog.config import Settings, settings as default_settings
from yarnlog.errors import AuthenticationError, YarnlogError
from yarnlog.log import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    app_settings: Settings = app.state.settings
    logger.info(
        "yarnlog.starting",
        version=__version__,
        environment=app_settings.environment,
        port=app_settings.port,
    )

    from yarnlog.db.engine import init_models

    if app_settings.create_tables:
        await init_models(app.state.engine)
        logger.info("yarnlog.tables_created")

    yield

    logger.info("yarnlog.shutdown")
    await app.state.engine.dispose()


def _validation_message(exc: RequestValidationError) -> str:
    """Turn the first pydantic error into a one-line public message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query")]
    field = loc[-1] if loc else None
    if field is None:
        return "Request body is required"
    if first.get("type") == "missing":
        return f"{field} is required"
    return f"Invalid value for {field}"


async def yarnlog_error_handler(request: Request, exc: YarnlogError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "yarnlog.unhandled_error",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application.

    Everything per-app comes from `settings`: the token issuer/verifier,
    bcrypt rounds and the database engine. The shared module engine is
    reused only when the database URL matches the default one.
    """
    settings = settings or default_settings

    from yarnlog.db import engine as db

    if settings.database_url == default_settings.database_url:
        app_engine = db.engine
    else:
        app_engine = db.build_engine(settings.database_url, echo=settings.debug)

    app = FastAPI(
        title="Yarnlog",
        description="Per-user project tracking API with bearer-token auth",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = app_engine
    app.state.session_factory = (
        db.async_session_factory
        if app_engine is db.engine
        else db.build_session_factory(app_engine)
    )
    app.state.token_issuer = TokenIssuer.from_settings(settings)
    app.state.token_verifier = TokenVerifier.from_settings(settings)

    # ── Error handling ────────────────────────────────────────
    app.add_exception_handler(YarnlogError, yarnlog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from yarnlog.middleware.request_id import RequestIdMiddleware
    from yarnlog.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # Mount API routes
    app.include_router(api_router)

    return app


configure_logging(
    debug=default_settings.debug,
    json_logs=default_settings.environment != "development",
)

# Default app instance (used by uvicorn: yarnlog.main:app)
app = create_app()
