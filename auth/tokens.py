"""
auth/tokens.py -- Signed bearer token encode / decode (compact JWS, HS256 only).

Wire format:
    base64url(header_json) "." base64url(claims_json) "." base64url(hmac_sha256)

  header_json  {"alg":"HS256","typ":"JWT"}
  claims_json  {"userId":..,"username":..,"role":..,"iat":..,"exp":..}
  base64url    RFC 4648 section 5 alphabet, '=' padding stripped

Signing and the JWS framing are python-jose (jose.jws / jose.jwk). Claims are
serialized here rather than by jose so the payload keeps its field order and
raw UTF-8 text.

Security design decisions:
  Secret: passed in by the caller on every call. This module never reads
       configuration, so the same functions serve tests, the CLI and the API.
       The secret is never logged and never appears in an error message.

  Signature check first: decode_token() rejects anything that is not three
       base64url segments, then verifies the MAC over the first two segments
       before jose parses the header or this module parses the claims. The
       signature segment must also be the canonical encoding of the MAC, so
       '=' padding or altered trailing bits are a signature mismatch.

  Fixed claim set: the payload maps onto the Claims dataclass. Unknown keys,
       missing keys and wrong JSON types are all MalformedToken; booleans are
       not accepted where an integer timestamp is expected.

  Expiry: exp is required. A token is rejected once exp < now (a token is
       still valid during the second named by exp). Expiry is checked here
       against the injected Clock, not by jose.jwt.

Failures are returned as Result.failure(<AuthCoreError>), never raised.

Layer rule: no imports from api/, books/, or core/.
"""

from __future__ import annotations

import binascii
import json
import logging
import re
from dataclasses import replace
from typing import Any, Union

from jose import jwk, jws
from jose.backends.base import Key
from jose.exceptions import JOSEError, JWSError
from jose.utils import base64url_decode, base64url_encode

from auth.clock import SYSTEM_CLOCK, Clock
from auth.errors import (
    CryptoFailure,
    InvalidInput,
    InvalidSignature,
    MalformedToken,
    MissingSecret,
    Result,
    TokenExpired,
)
from auth.models import Claims

logger = logging.getLogger("libraryapi.auth.tokens")

Secret = Union[str, bytes]

ALGORITHM = "HS256"
TOKEN_TYPE = "JWT"

_HEADER = {"alg": ALGORITHM, "typ": TOKEN_TYPE}

# Three non-empty segments drawn from the unpadded base64url alphabet.
_TOKEN_SHAPE = re.compile(r"[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")

# Claims field -> wire key. Order here is the serialization order.
_WIRE_KEYS = {
    "subject": "userId",
    "username": "username",
    "role": "role",
    "issued_at": "iat",
    "expires_at": "exp",
}


def _compact_json(obj: dict) -> bytes:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _signing_key(secret: Secret) -> Key:
    try:
        return jwk.construct(secret, ALGORITHM)
    except JOSEError as exc:
        raise CryptoFailure("The secret cannot be used as an HMAC-SHA256 key.") from exc


def _signature_matches(key: Key, signing_input: str, encoded_signature: str) -> bool:
    """True when encoded_signature is exactly the encoded MAC of signing_input."""
    encoded = encoded_signature.encode("ascii")
    try:
        signature = base64url_decode(encoded)
    except binascii.Error:
        return False
    if base64url_encode(signature) != encoded:
        return False
    return key.verify(signing_input.encode("ascii"), signature)


# ---------------------------------------------------------------------------
# Claims <-> payload mapping
# ---------------------------------------------------------------------------


def claims_to_payload(claims: Claims) -> dict[str, Any]:
    return {wire: getattr(claims, field) for field, wire in _WIRE_KEYS.items()}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def payload_to_claims(payload: Any) -> Claims:
    """Map a decoded payload onto Claims. Raises ValueError on any shape problem."""
    if not isinstance(payload, dict):
        raise ValueError("payload is not a JSON object")
    unknown = set(payload) - set(_WIRE_KEYS.values())
    if unknown:
        raise ValueError(f"unexpected claim keys: {sorted(unknown)!r}")
    missing = set(_WIRE_KEYS.values()) - set(payload)
    if missing:
        raise ValueError(f"missing claim keys: {sorted(missing)!r}")
    for key in ("userId", "username", "role"):
        if not isinstance(payload[key], str):
            raise ValueError(f"claim {key!r} must be a string")
    for key in ("iat", "exp"):
        if not _is_int(payload[key]):
            raise ValueError(f"claim {key!r} must be an integer")
    return Claims(
        subject=payload["userId"],
        username=payload["username"],
        role=payload["role"],
        issued_at=payload["iat"],
        expires_at=payload["exp"],
    )


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def encode_token(
    identity: Claims,
    secret: Secret,
    ttl_seconds: int,
    clock: Clock = SYSTEM_CLOCK,
) -> Result[str]:
    """Mint a signed token for identity, valid for ttl_seconds from now.

    Only subject, username and role are taken from identity; issued_at and
    expires_at are overwritten from the clock, which is read exactly once.
    """
    if not secret:
        return Result.failure(MissingSecret())
    if not _is_int(ttl_seconds) or ttl_seconds <= 0:
        return Result.failure(InvalidInput("ttl_seconds must be a positive integer."))

    issued_at = clock.now()
    claims = replace(identity, issued_at=issued_at, expires_at=issued_at + ttl_seconds)

    try:
        token = jws.sign(_compact_json(claims_to_payload(claims)), _signing_key(secret), algorithm=ALGORITHM)
    except CryptoFailure as exc:
        return Result.failure(exc)
    except JWSError as exc:
        return Result.failure(CryptoFailure(f"Token signing failed: {type(exc).__name__}"))

    logger.debug("Issued token for subject %s (exp=%d)", claims.subject, claims.expires_at)
    return Result.success(token)


def decode_token(
    token: str,
    secret: Secret,
    clock: Clock = SYSTEM_CLOCK,
) -> Result[Claims]:
    """Verify token against secret and return its Claims.

    Failure kinds: MalformedToken, InvalidSignature, TokenExpired,
    MissingSecret (empty secret) and CryptoFailure.
    """
    if not secret:
        return Result.failure(MissingSecret())
    if not isinstance(token, str) or not _TOKEN_SHAPE.fullmatch(token):
        return Result.failure(MalformedToken("Token must be three non-empty base64url segments."))

    try:
        key = _signing_key(secret)
    except CryptoFailure as exc:
        return Result.failure(exc)

    signing_input, _, encoded_signature = token.rpartition(".")
    if not _signature_matches(key, signing_input, encoded_signature):
        logger.debug("Rejected token: signature mismatch")
        return Result.failure(InvalidSignature())

    try:
        # The MAC already matched, so jose can only fail here on the header.
        payload = jws.verify(token, key, algorithms=[ALGORITHM])
        if jws.get_unverified_header(token) != _HEADER:
            raise ValueError("unsupported token header")
        claims = payload_to_claims(json.loads(payload))
    except (JWSError, ValueError) as exc:  # JSONDecodeError and UnicodeDecodeError included
        logger.debug("Rejected token: %s", type(exc).__name__)
        return Result.failure(MalformedToken())

    if claims.expires_at < clock.now():
        return Result.failure(TokenExpired())

    return Result.success(claims)
