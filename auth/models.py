"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors books/models.py
-- dataclasses own domain shape; the store, token codec and service do the work.

Layer rule: no imports from api/, books/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass
class Credential:
    """A registered account and its stored password material.

    password_digest is sha256(password || salt) as 64 lowercase hex chars.
    salt is 16 random bytes as 32 lowercase hex chars. Rows written before the
    salt column existed may come back with an empty salt or digest; login
    reports those as IncompleteCredentialRecord instead of guessing.
    """

    id: str  # UUID4
    username: str
    email: str
    password_digest: str
    salt: str
    role: str = Role.USER.value
    created_at: Optional[str] = None


@dataclass(frozen=True)
class Claims:
    """Verified assertions carried by a bearer token.

    subject is the Credential.id. issued_at / expires_at are epoch seconds and
    are None only on the identity passed into encode_token(), which fills them.
    """

    subject: str
    username: str
    role: str
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None


@dataclass(frozen=True)
class LoginGrant:
    """A freshly minted token and the account it was minted for."""

    token: str
    credential: Credential
    expires_in: int  # seconds
