"""
auth/gate.py -- Request authentication and role checks.

authenticate() turns an Authorization header value into verified Claims;
authorize() checks an already-verified Claims against a required role. The
HTTP layer (auth/dependencies.py) calls these and maps failures to 401/403.

authorize() never looks at a token. It is only meaningful after authenticate()
succeeded for the same request.

Layer rule: no imports from api/, books/, or core/.
"""

from __future__ import annotations

from typing import Optional

from auth.clock import SYSTEM_CLOCK, Clock
from auth.errors import InsufficientRole, MissingCredential, Result
from auth.models import Claims
from auth.tokens import Secret, decode_token

BEARER_PREFIX = "Bearer "


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """Return the token from 'Bearer <token>', or None if the header has another shape."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def authenticate(
    header: Optional[str],
    secret: Secret,
    clock: Clock = SYSTEM_CLOCK,
) -> Result[Claims]:
    """Verify the bearer token in an Authorization header value.

    Returns MissingCredential when there is no usable bearer token; otherwise
    whatever decode_token() returns (MalformedToken, InvalidSignature,
    TokenExpired on failure).
    """
    token = extract_bearer_token(header)
    if token is None:
        return Result.failure(MissingCredential())
    return decode_token(token, secret, clock=clock)


def authorize(claims: Claims, required_role: str) -> Result[None]:
    if claims.role != required_role:
        return Result.failure(InsufficientRole(f"Requires role {required_role!r}."))
    return Result.success(None)
