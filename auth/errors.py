"""
auth/errors.py -- Error taxonomy and the Result type returned by auth operations.

Every failure the auth layer can report is a subclass of AuthCoreError with a
stable machine-readable `code`. Operations do not raise these for expected
outcomes (bad token, wrong password, duplicate user); they return a Result
carrying the error instance instead, and the HTTP boundary decides how to
present it. Call Result.unwrap() to get exception semantics back.

Messages never contain secret material, password plaintext, digests, or
token signatures.

Layer rule: stdlib only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class AuthCoreError(Exception):
    """Base class for every auth failure kind."""

    code = "auth_error"
    default_message = "Authentication failed."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# ---------------------------------------------------------------------------
# Input and persistence conflicts
# ---------------------------------------------------------------------------


class ValidationError(AuthCoreError):
    code = "validation_error"
    default_message = "Request fields are missing or malformed."


class ConflictError(AuthCoreError):
    code = "conflict"
    default_message = "Username or email already exists."


class NotFoundError(AuthCoreError):
    code = "not_found"
    default_message = "User not found."


# ---------------------------------------------------------------------------
# Misconfiguration / primitive failures
# ---------------------------------------------------------------------------


class InvalidInput(AuthCoreError):
    code = "invalid_input"
    default_message = "Invalid token parameters."


class CryptoFailure(AuthCoreError):
    code = "crypto_failure"
    default_message = "Cryptographic primitive unavailable."


class MissingSecret(InvalidInput, CryptoFailure):
    """The signing secret is empty. Both bad input and a misconfiguration."""

    code = "missing_secret"
    default_message = "Signing secret is not configured."


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthenticationError(AuthCoreError):
    code = "unauthenticated"
    default_message = "Authentication required."


class MissingCredential(AuthenticationError):
    code = "missing_credential"
    default_message = "No bearer token provided."


class MalformedToken(AuthenticationError):
    code = "malformed_token"
    default_message = "Token is malformed."


class InvalidSignature(AuthenticationError):
    code = "invalid_signature"
    default_message = "Token signature is invalid."


class TokenExpired(AuthenticationError):
    code = "token_expired"
    default_message = "Token has expired."


class InvalidPassword(AuthenticationError):
    # Same code for unknown user and wrong password so responses do not
    # reveal which usernames exist.
    code = "bad_credentials"
    default_message = "Invalid username or password."


class IncompleteCredentialRecord(AuthenticationError):
    code = "incomplete_credential"
    default_message = "Account data is incomplete. Please contact support."


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class AuthorizationError(AuthCoreError):
    code = "forbidden"
    default_message = "Access denied."


class InsufficientRole(AuthorizationError):
    code = "insufficient_role"
    default_message = "Required role not held."


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an auth operation: either a value or an AuthCoreError.

    Usage:
        result = decode_token(token, secret)
        if not result.ok:
            log(result.error.code)
        claims = result.unwrap()   # raises result.error on failure
    """

    value: Optional[T] = None
    error: Optional[AuthCoreError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuthCoreError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
