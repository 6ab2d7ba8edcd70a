"""
auth/passwords.py -- Salted password digests.

Scheme: digest = hex(sha256(utf8(password) || utf8(salt_hex))), with a fresh
16-byte random salt per account stored beside the digest. Both are hex strings
so they fit plain text columns (64 and 32 chars respectively).

Verification recomputes the digest and compares with hmac.compare_digest, so
the time taken does not depend on how many leading characters match.

Layer rule: stdlib only. No imports from api/, books/, or core/.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

from auth.errors import CryptoFailure

SALT_BYTES = 16


def generate_salt() -> str:
    """Return 16 bytes from the OS CSPRNG as 32 lowercase hex characters."""
    try:
        return secrets.token_hex(SALT_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise CryptoFailure("No secure random source available.") from exc


def hash_password(password: str, salt: str) -> str:
    """Return the 64-char hex SHA-256 digest of password followed by salt."""
    try:
        digest = hashlib.sha256()
    except ValueError as exc:  # e.g. a crypto policy disabling the algorithm
        raise CryptoFailure("SHA-256 is unavailable.") from exc
    digest.update(password.encode("utf-8"))
    digest.update(salt.encode("utf-8"))
    return digest.hexdigest()


def verify_password(password: str, digest: str, salt: str) -> bool:
    """Return True if password hashes to digest under salt.

    A mismatch is an ordinary False. Only an unavailable digest primitive
    raises (CryptoFailure).
    """
    candidate = hash_password(password, salt)
    return hmac.compare_digest(candidate.encode("utf-8"), digest.encode("utf-8"))
