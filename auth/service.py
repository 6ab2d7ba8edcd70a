"""
auth/service.py -- Account registration, password login, and profile lookup.

These are the operations the HTTP routes and the CLI call. Each returns a
Result; nothing here raises for an expected outcome (duplicate user, wrong
password, incomplete record). CryptoFailure from the hasher is caught and
returned the same way.

Security notes:
  [C1] Timing equalization: login() always runs the digest comparison, even
       when the username does not exist (against _DUMMY_DIGEST), so response
       time does not reveal which usernames are registered. Unknown username
       and wrong password both return InvalidPassword.

  Duplicate check happens before hashing: a repeat registration fails with
  ConflictError without generating a salt or computing a digest.

Layer rule: no imports from api/, books/, or core/. The secret and ttl arrive
as arguments.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError

from auth.clock import SYSTEM_CLOCK, Clock
from auth.errors import (
    ConflictError,
    CryptoFailure,
    IncompleteCredentialRecord,
    InvalidPassword,
    NotFoundError,
    Result,
    ValidationError,
)
from auth.models import Claims, Credential, LoginGrant, Role
from auth.passwords import generate_salt, hash_password, verify_password
from auth.store import UserStore
from auth.tokens import Secret, encode_token

logger = logging.getLogger("libraryapi.auth.service")

_DUMMY_SALT = "00000000000000000000000000000000"
_DUMMY_DIGEST = hash_password("libraryapi_timing_dummy", _DUMMY_SALT)


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def register(
    store: UserStore,
    username: str,
    email: str,
    password: str,
    role: str = Role.USER.value,
) -> Result[Credential]:
    """Create a new account with a freshly salted password digest."""
    if _blank(username) or _blank(email) or _blank(password):
        return Result.failure(ValidationError("Username, email, and password are required."))
    if "@" not in email:
        return Result.failure(ValidationError("Email address is malformed."))
    if role not in {r.value for r in Role}:
        return Result.failure(ValidationError(f"Unknown role {role!r}."))

    if store.exists_by_username_or_email(username, email):
        return Result.failure(ConflictError())

    try:
        salt = generate_salt()
        digest = hash_password(password, salt)
    except CryptoFailure as exc:
        logger.error("Registration failed: %s", exc.code)
        return Result.failure(exc)

    credential = Credential(
        id=str(uuid.uuid4()),
        username=username,
        email=email,
        password_digest=digest,
        salt=salt,
        role=role,
    )
    try:
        store.insert(credential)
    except IntegrityError:
        # Lost a race with a concurrent registration for the same name/email.
        return Result.failure(ConflictError())

    logger.info("Registered user %s (role=%s)", credential.id, credential.role)
    return Result.success(credential)


def login(
    store: UserStore,
    username: str,
    password: str,
    secret: Secret,
    ttl_seconds: int,
    clock: Clock = SYSTEM_CLOCK,
) -> Result[LoginGrant]:
    """Check a username/password pair and mint a bearer token on success."""
    if _blank(username) or _blank(password):
        return Result.failure(ValidationError("Username and password are required."))

    credential = store.find_by_username(username)
    try:
        if credential is None:
            verify_password(password, _DUMMY_DIGEST, _DUMMY_SALT)  # [C1]
            return Result.failure(InvalidPassword())

        if not credential.salt or not credential.password_digest:
            logger.error("Stored credential %s is missing salt or digest", credential.id)
            return Result.failure(IncompleteCredentialRecord())

        if not verify_password(password, credential.password_digest, credential.salt):
            return Result.failure(InvalidPassword())
    except CryptoFailure as exc:
        logger.error("Password verification failed: %s", exc.code)
        return Result.failure(exc)

    identity = Claims(subject=credential.id, username=credential.username, role=credential.role)
    minted = encode_token(identity, secret, ttl_seconds, clock=clock)
    if not minted.ok:
        logger.error("Token creation failed: %s", minted.error.code)
        return Result.failure(minted.error)

    logger.info("User %s logged in", credential.id)
    return Result.success(LoginGrant(token=minted.value, credential=credential, expires_in=ttl_seconds))


def get_profile(store: UserStore, claims: Claims) -> Result[Credential]:
    """Return the account a verified token was issued for."""
    credential = store.find_by_id(claims.subject)
    if credential is None:
        return Result.failure(NotFoundError())
    return Result.success(credential)
