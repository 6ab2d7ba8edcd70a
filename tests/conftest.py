"""
tests/conftest.py -- Shared test fixtures for Library API tests.

This module provides:
  - SECRET: the signing secret the app under test uses (from get_settings())
  - make_token(): mint a bearer token for a credential with any clock / ttl
  - user_store / book_store: fresh in-memory stores for unit tests
  - api_client: TestClient wired to isolated stores, with an admin and a
    regular user already registered

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
TestClient stores because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates JWT_SECRET in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate JWT_SECRET in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth import service
from auth.clock import SYSTEM_CLOCK, Clock
from auth.models import Claims, Credential, Role
from auth.store import UserStore
from auth.tokens import encode_token
from books.store import BookStore
from core.config import get_settings

SECRET = get_settings().jwt_secret

ADMIN_PASSWORD = "adminpass123"
USER_PASSWORD = "userpass123"


def make_token(credential: Credential, ttl_seconds: int = 3600, clock: Clock = SYSTEM_CLOCK) -> str:
    identity = Claims(subject=credential.id, username=credential.username, role=credential.role)
    return encode_token(identity, SECRET, ttl_seconds, clock=clock).unwrap()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def book_store() -> Generator[BookStore, None, None]:
    store = BookStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    """Login is rate limited per client IP; every TestClient request shares one IP."""
    limiter.reset()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    user_store: UserStore
    book_store: BookStore
    admin: Credential
    user: Credential
    admin_token: str
    user_token: str


def _patch_lifespan(user_store: UserStore, book_store: BookStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.clock = SYSTEM_CLOCK
        app.state.user_store = user_store
        app.state.book_store = book_store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for integration tests.

    One set of stores per test module (named after the module) so modules do
    not see each other's rows.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    user_store = UserStore(f"sqlite:///file:users_{suffix}?mode=memory&cache=shared&uri=true")
    book_store = BookStore(f"sqlite:///file:books_{suffix}?mode=memory&cache=shared&uri=true")

    admin = service.register(
        user_store, "testadmin", "admin@example.org", ADMIN_PASSWORD, role=Role.ADMIN.value
    ).unwrap()
    user = service.register(user_store, "testuser", "user@example.org", USER_PASSWORD).unwrap()

    app.router.lifespan_context = _patch_lifespan(user_store, book_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            user_store=user_store,
            book_store=book_store,
            admin=admin,
            user=user,
            admin_token=make_token(admin),
            user_token=make_token(user),
        )

    book_store.close()
    user_store.close()
