"""
api/routes/v1/auth.py -- Registration, login, and profile endpoints.

Routes:
  POST /api/v1/auth/register   -- create a "user" account; 201
  POST /api/v1/auth/login      -- password login; returns a bearer token
  GET  /api/v1/auth/profile    -- current account (requires bearer token)

Security:
  [H2] POST /login is rate-limited per client IP (Settings.login_rate_limit).
  [C1] auth.service.login() provides timing equalization -- use it, never inline
       find_by_username() + verify_password().
  [M5] Cache-Control: no-store on login responses.
  Self-registration always creates role "user". Admins are created with
  `python main.py create-admin`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from auth import service
from auth.dependencies import get_current_claims, raise_for_error
from auth.models import Claims, Credential
from auth.store import UserStore
from core.config import get_settings

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public, rate limited
# - GET  /api/v1/auth/profile:  requires auth (get_current_claims)
router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create a new account. 409 if the username or email is already taken."""
    user_store: UserStore = request.app.state.user_store
    result = service.register(user_store, body.username, body.email, body.password)
    if not result.ok:
        raise_for_error(result.error)
    return RegisterResponse(user_id=result.value.id)


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(_login_rate_limit)  # [H2]
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed bearer token.

    Unknown username and wrong password produce the same 401 bad_credentials
    response so the endpoint does not leak which usernames exist.
    """
    settings = get_settings()
    user_store: UserStore = request.app.state.user_store
    result = service.login(
        user_store,
        body.username,
        body.password,
        settings.jwt_secret,
        settings.token_ttl_seconds,
        clock=request.app.state.clock,
    )
    if not result.ok:
        raise_for_error(result.error)

    grant = result.value
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=grant.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=grant.expires_in,
            user=_user_info(grant.credential),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.get("/auth/profile", response_model=ProfileResponse)
def profile(request: Request, claims: Claims = Depends(get_current_claims)) -> ProfileResponse:
    """Return the account the bearer token was issued for. 404 if it was deleted."""
    user_store: UserStore = request.app.state.user_store
    result = service.get_profile(user_store, claims)
    if not result.ok:
        raise_for_error(result.error)
    return ProfileResponse(user=_user_info(result.value))


def _user_info(credential: Credential) -> UserInfo:
    return UserInfo(
        id=credential.id,
        username=credential.username,
        email=credential.email,
        role=credential.role,
        created_at=credential.created_at,
    )
