"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token sources are checked in priority order:
  1. JWT cookie ("access_token") -- set by the web client login flow and by
     POST /api/login.
  2. Authorization: Bearer <token> header -- API clients.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.
require_api_token() applies get_current_user() only when the app was started
with require_api_auth enabled.

Layer rule: no imports from web/ or machines/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import User
from auth.tokens import decode_access_token


def try_get_current_user(request: Request) -> User | None:
    """Resolve the request's user from cookie or Bearer token. Never raises."""
    token: str | None = request.cookies.get("access_token")
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None
    # A token whose user no longer resolves (e.g. fresh database) is treated
    # as anonymous.
    return request.app.state.user_store.get_by_email(payload["sub"])


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated."""
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user


def require_api_token(request: Request) -> User | None:
    """Router-level guard for the machine routes.

    Open by default; enforces get_current_user() when app.state.require_api_auth
    is True (REQUIRE_API_AUTH=true).
    """
    if getattr(request.app.state, "require_api_auth", False):
        return get_current_user(request)
    return None
