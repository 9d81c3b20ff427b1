"""
api/routes/auth.py -- Registration and login REST endpoints.

Routes:
  POST /api/register  -- create a user; 201, 400 if the email is taken
  POST /api/login     -- check credentials; 200 with a signed token, 401 otherwise

Security:
  Both routes are rate-limited per client IP (Settings.login_rate_limit,
  Settings.register_rate_limit).
  Login responses carry Cache-Control: no-store and set the httpOnly
  access_token cookie alongside the token in the body.
  Unknown email and wrong password return the same 401 body.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import CredentialsRequest, LoginResponse, MessageResponse
from auth.service import AuthService
from auth.tokens import set_auth_cookie
from core.config import get_settings

_settings = get_settings()

# Auth policy: both endpoints are public -- they are how a client gets a token.
router = APIRouter()


def _email(body: CredentialsRequest) -> str | None:
    return body.email.strip() if body.email else body.email


@limiter.limit(_settings.register_rate_limit)
@router.post("/register", response_model=MessageResponse, status_code=201)
def register(request: Request, body: CredentialsRequest) -> MessageResponse:
    """Register a new email/password pair.

    Errors (raised by AuthService, rendered by api/main.py handlers):
      400 validation_error -- email or password missing
      400 duplicate_user   -- email already registered
      500 storage_error
    """
    auth_service: AuthService = request.app.state.auth_service
    message = auth_service.register(_email(body), body.password)
    return MessageResponse(message=message)


@limiter.limit(_settings.login_rate_limit)
@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate and return a signed, expiring access token.

    InvalidCredentials from the service becomes 401 invalid_credentials.
    """
    auth_service: AuthService = request.app.state.auth_service
    token = auth_service.login(_email(body), body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=token, expires_in=_settings.token_expire_seconds).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp
