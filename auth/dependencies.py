"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with an "Authorization: Bearer <token>" header. The
token is verified by auth.gate.authenticate() with the configured JWT_SECRET
and the app's clock; the verified Claims are handed to the route for the rest
of the request and never cached.

get_current_claims() raises HTTP 401 if unauthenticated.
require_admin() wraps it and raises HTTP 403 if the role is not "admin".
raise_for_error() is the single place auth error kinds become HTTP statuses,
so routes and dependencies report them identically.

Layer rule: no imports from api/ or books/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import NoReturn

from fastapi import Depends, HTTPException, Request

from auth.clock import SYSTEM_CLOCK
from auth.errors import (
    AuthCoreError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    IncompleteCredentialRecord,
    NotFoundError,
    ValidationError,
)
from auth.gate import authenticate, authorize
from auth.models import Claims, Role
from core.config import get_settings

# Checked in order; the first matching class wins, so subclasses that need a
# different status from their parent go first.
_STATUS_BY_ERROR: list[tuple[type[AuthCoreError], int]] = [
    (IncompleteCredentialRecord, 500),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (ValidationError, 400),
    (ConflictError, 409),
    (NotFoundError, 404),
]

_GENERIC_500 = "An unexpected error occurred."


def status_for_error(error: AuthCoreError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def raise_for_error(error: AuthCoreError) -> NoReturn:
    """Raise the HTTPException that represents an auth failure.

    500-class kinds (CryptoFailure, MissingSecret, InvalidInput) get a generic
    message; their detail stays in the server log.
    """
    status = status_for_error(error)
    message = error.message if status < 500 or isinstance(error, IncompleteCredentialRecord) else _GENERIC_500
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    raise HTTPException(
        status_code=status,
        detail={"code": error.code, "message": message},
        headers=headers,
    )


def get_current_claims(request: Request) -> Claims:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: Claims = Depends(get_current_claims)): ...
    """
    clock = getattr(request.app.state, "clock", SYSTEM_CLOCK)
    result = authenticate(
        request.headers.get("Authorization"),
        get_settings().jwt_secret,
        clock=clock,
    )
    if not result.ok:
        raise_for_error(result.error)
    return result.value


def require_admin(claims: Claims = Depends(get_current_claims)) -> Claims:
    """Require the admin role. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin."""
    result = authorize(claims, Role.ADMIN.value)
    if not result.ok:
        raise_for_error(result.error)
    return claims
