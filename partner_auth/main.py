"""
FastAPI application for OneNote partner authorization.

This module wires dependencies and configures the application.
Flow logic is in partner_auth/core, adapters in partner_auth/infrastructure.
"""

import logging
import os
import secrets
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

# Configure logging FIRST, before other local imports
from partner_auth.logging_config import setup_global_logging

setup_global_logging()

# Now import other modules (they will use the configured logging)
from fastapi import FastAPI, Request, status  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from fastapi.staticfiles import StaticFiles  # noqa: E402
from starlette.middleware.sessions import SessionMiddleware  # noqa: E402

from partner_auth.core.exceptions import (  # noqa: E402
    AuthorizationValidationError,
    IncompleteProfileError,
    ProviderTransportError,
    StoreError,
)
from partner_auth.oauth import router as oauth_router  # noqa: E402
from partner_auth.oauth.config import get_app_config  # noqa: E402
from partner_auth.oauth.dependencies import get_authorization_store  # noqa: E402

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "An error occurred during the authentication process."
STATIC_DIR = Path(__file__).resolve().parent / "static"


# ============================================================================
# Application Lifecycle
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Validates configuration and ensures the database schema before serving.
    Either failure aborts startup: serving without a working store is unsafe.
    """
    logger.info("Application starting up...")
    get_app_config().validate()

    store = get_authorization_store()
    try:
        await store.ensure_schema()
    except Exception:
        logger.error("Failed to start the server: authorization store unavailable")
        await store.close()
        raise
    logger.info("Application started successfully")
    yield
    logger.info("Shutting down application...")
    await store.close()


app = FastAPI(
    title="OneNote Partner Authorization",
    description="OAuth 2.0 authorization-code flow with Microsoft identity",
    version="1.0.0",
    lifespan=lifespan,
)

# Session middleware holds the anti-forgery state between redirect and callback
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY")
if not SESSION_SECRET_KEY:
    logger.warning(
        "SESSION_SECRET_KEY is not set; using a random key, sessions will not "
        "survive a restart"
    )
    SESSION_SECRET_KEY = secrets.token_hex(32)
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET_KEY,
    same_site="lax",
    https_only=True,
)

app.mount(
    "/static",
    StaticFiles(directory=STATIC_DIR, check_dir=False),
    name="static",
)


# ============================================================================
# Centralized Exception Handlers
# ============================================================================


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
    )


@app.exception_handler(AuthorizationValidationError)
async def validation_error_handler(
    request: Request, exc: AuthorizationValidationError
):
    """
    Handle rejected callbacks (state mismatch, missing code).

    Returns 400 Bad Request; the user has to restart the flow.
    """
    logger.warning(
        f"Authorization callback rejected: {exc}",
        extra={"extra_fields": {"error_type": type(exc).__name__}},
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(ProviderTransportError)
async def provider_error_handler(request: Request, exc: ProviderTransportError):
    """
    Handle failed calls to the identity provider.

    Provider detail is logged server-side only.
    """
    logger.error(
        f"Identity provider request failed: {exc}",
        extra={"extra_fields": {"error_type": "ProviderTransportError"}},
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE
    )


@app.exception_handler(IncompleteProfileError)
async def incomplete_profile_handler(request: Request, exc: IncompleteProfileError):
    """Handle a profile response without user id or email."""
    logger.error(
        f"Incomplete profile from identity provider: {exc}",
        extra={"extra_fields": {"error_type": "IncompleteProfileError"}},
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """Handle persistence failures. Not retried."""
    logger.error(
        f"Authorization store failure: {exc}",
        extra={"extra_fields": {"error_type": "StoreError"}},
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE
    )


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "onenote-partner-auth",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "healthy"}


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(oauth_router.router)
