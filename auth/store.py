"""
auth/store.py -- SQLAlchemy Core persistence layer for credentials.

Pattern: Repository + Data Mapper (same as books/store.py).
UserStore is the repository; _row_to_credential is the mapper.
Route, service, and CLI code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  username and email each carry a UNIQUE constraint. The service checks
  exists_by_username_or_email() before hashing, but two concurrent
  registrations can both pass that check -- the constraint is the real guard,
  and insert() lets IntegrityError propagate so the caller can report a
  conflict.

DB URL: core.config Settings.database_url (SQLite file by default).

Engine construction (SQLite thread and WAL settings) is core.db.make_engine.

Layer rule: no imports from api/ or books/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, MetaData, String, Table, or_, select
from sqlalchemy.engine import Engine

from auth.models import Credential
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),  # UUID4
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(64)),  # sha256 hex
    Column("salt", String(32)),  # 16 bytes hex
    Column("role", String(20), nullable=False, server_default="user"),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for Credential records.

    Usage:
        store = UserStore("sqlite:///library.db")
        store.insert(credential)
        cred = store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def insert(self, credential: Credential) -> None:
        """Insert a new credential.

        Raises sqlalchemy.exc.IntegrityError if the id, username, or email is
        already taken.
        """
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=credential.id,
                    username=credential.username,
                    email=credential.email,
                    password_hash=credential.password_digest,
                    salt=credential.salt,
                    role=credential.role,
                    created_at=credential.created_at or _now_iso(),
                )
            )
            conn.commit()

    def find_by_username(self, username: str) -> Optional[Credential]:
        """Look up a credential by exact username (case-sensitive)."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_credential(row) if row is not None else None

    def find_by_id(self, user_id: str) -> Optional[Credential]:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_credential(row) if row is not None else None

    def exists_by_username_or_email(self, username: str, email: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_users.c.id).where(or_(_users.c.username == username, _users.c.email == email)).limit(1)
            ).fetchone()
        return row is not None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_credential(row) -> Credential:
    # NULL hash/salt columns map to "" so login can flag the record as incomplete.
    return Credential(
        id=row.id,
        username=row.username,
        email=row.email,
        password_digest=row.password_hash or "",
        salt=row.salt or "",
        role=row.role,
        created_at=row.created_at,
    )
