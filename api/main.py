"""
api/main.py -- FastAPI application entry point for the auth service.

Run with:  uvicorn api.main:app --reload

Required environment (see core/config.py):
  PEPPERS     comma-separated pepper list, current pepper first
  JWT_SECRET  token signing secret, >= 32 chars (auto-generated if DEBUG=true)

Middleware stack (outermost to innermost):
  1. CORSMiddleware   -- adds CORS headers for allowed browser origins
  2. log_requests     -- one log line per request with latency

Lifespan handles startup (settings, user store, auth service) and shutdown
(dispose the DB engine) symmetrically. A missing pepper list or token secret
raises during startup and the server never accepts a request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import HealthResponse, MessageResponse
from api.routes.v1.auth import router as auth_router
from auth.service import create_auth_service
from auth.store import DEFAULT_DB_URL, UserStore
from core.config import get_settings

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("pepperauth.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the store and AuthService once; tear the store down on shutdown.

    Configuration is read exactly once here and handed to the AuthService as
    an explicit value. Nothing below the route layer consults the
    environment.
    """
    logger.info("Auth API starting up")
    settings = get_settings()
    app.state.user_store = UserStore(settings.database_url or DEFAULT_DB_URL)
    app.state.auth_service = create_auth_service(settings, app.state.user_store)
    logger.info("Auth initialized (%d registered users)", app.state.user_store.count_users())

    yield

    app.state.user_store.close()
    logger.info("Auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Pepper Auth API",
    description="Username/password registration and login with peppered bcrypt digests and JWT bearer tokens.",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body uses the same {"success": false, "message": ...} shape as
# the signup/login results so clients parse one envelope.
# ---------------------------------------------------------------------------


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[-1]) if len(loc) > 1 else "body"
        if err.get("type") == "json_invalid":
            messages.append("Request body must be valid JSON.")
        elif err.get("type") == "string_too_short":
            min_length = (err.get("ctx") or {}).get("min_length")
            messages.append(f"{field.capitalize()} must be at least {min_length} characters")
        else:
            messages.append(f"{field}: {err.get('msg')}")
    return "; ".join(messages)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the request body fails validation or is not JSON."""
    return JSONResponse(
        status_code=400,
        content=MessageResponse(message=_validation_message(exc)).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured body for 401s from get_current_user and routing 404/405s."""
    message = str(exc.detail)
    if exc.status_code == 404:
        message = "Use /api/v1/signup or /api/v1/login"
    return JSONResponse(
        status_code=exc.status_code,
        content=MessageResponse(message=message).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=MessageResponse(message="An unexpected error occurred.").model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=API_VERSION)
