"""
api/main.py -- FastAPI application entry point for MedMachines.

Exposes the Auth Service and Machine Service over HTTP under /api. The web
client router is mounted by asgi.py, not here.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. SessionMiddleware     -- signed cookie holding the web client's view-state key

Lifespan builds the stores and services on startup and disposes the engines
on shutdown.

Error mapping (all bodies use the ErrorResponse envelope):
  ValidationError, DuplicateUser -> 400
  InvalidCredentials             -> 401
  NotFound                       -> 404
  RequestValidationError         -> 422
  RateLimitExceeded              -> 429
  StorageError, anything else    -> 500, generic message
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.machines import router as machines_router
from auth.service import AuthService
from auth.store import UserStore
from core.config import get_settings
from core.errors import (
    DuplicateUser,
    InvalidCredentials,
    MachineRegistryError,
    NotFound,
    StorageError,
    ValidationError,
)
from machines.service import MachineService
from machines.store import MachineStore

VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("medmachines.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create stores and services before the first request; dispose on shutdown.

    Stores first; services wrap them. The web client adds its own state in
    asgi.py.
    """
    logger.info("MedMachines API starting up")
    app.state.user_store = UserStore()
    app.state.machine_store = MachineStore()
    app.state.auth_service = AuthService(app.state.user_store)
    app.state.machine_service = MachineService(app.state.machine_store)
    app.state.require_api_auth = _settings.require_api_auth
    logger.info(
        "Stores initialized (users=%d, require_api_auth=%s)",
        app.state.user_store.count_users(),
        app.state.require_api_auth,
    )

    yield

    app.state.machine_store.close()
    app.state.user_store.close()
    logger.info("MedMachines API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="MedMachines API",
    description="Record medical machine category, type and purpose.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() calls are applied outermost-first from the caller's
# perspective: TrustedHost -> CORS -> SlowAPI -> Session.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# The web client keeps only a random view-state key in this signed cookie;
# the state itself stays server-side in app.state.view_states.
app.add_middleware(SessionMiddleware, secret_key=_settings.secret_key, https_only=_settings.secure_cookies)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


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


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(machines_router, prefix="/api", tags=["Machines"])
# Web client router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

_DOMAIN_STATUS: dict[type[MachineRegistryError], int] = {
    ValidationError: 400,
    DuplicateUser: 400,
    InvalidCredentials: 401,
    NotFound: 404,
    StorageError: 500,
}


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(MachineRegistryError)
async def domain_error_handler(request: Request, exc: MachineRegistryError) -> JSONResponse:
    """Map the core.errors taxonomy to status codes.

    StorageError messages are generic ("Failed to save machine.") -- the
    underlying database exception was logged by the service and is never
    placed in the response.
    """
    status_code = _DOMAIN_STATUS.get(type(exc), 500)
    resp = _error_response(status_code, exc.code, exc.message)
    if isinstance(exc, InvalidCredentials):
        resp.headers["Cache-Control"] = "no-store"
    return resp


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when the body cannot be parsed at all."""
    return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict (auth dependencies raise those),
    use it directly as the error field.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged only, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is reachable regardless of router
# registration. No rate limit -- monitoring must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether the database answers."""
    try:
        request.app.state.machine_store.ping()
        database = "ok"
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable", exc_info=True)
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
