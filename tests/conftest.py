"""
tests/conftest.py -- Shared test fixtures for Inkwell.

This module provides:
  - engine / user_store / blog_store: fresh in-memory stores for unit tests
  - api_client: TestClient wired to isolated stores via a patched lifespan
  - make_user: factory that creates a user directly in the API's store and
    returns (User, bearer_token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the TestClient because it runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. Unit tests run on one thread, so plain :memory: is fine there.

DEBUG must be set before any auth/core import so get_settings() can
auto-generate SECRET_KEY and tolerate a missing ADMIN_PASSWORD.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

# CRITICAL: environment first, before any project import reads get_settings().
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from asgi import app
from auth.models import ROLE_USER, User
from auth.service import seed_admin
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from blogs.store import BlogStore
from core.database import create_db_engine

ADMIN_PASSWORD = "adminpass123"

# Login is rate limited per client IP; every TestClient request comes from
# the same address.
limiter.enabled = False


def unique_name(prefix: str = "user") -> str:
    """Usernames must be unique per module-scoped database."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    eng = create_db_engine("sqlite:///:memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def blog_store(engine) -> BlogStore:
    return BlogStore(engine)


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, blog_store: BlogStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so routes see isolated
    databases, and replaces the authlib registry with a mock so no test can
    reach Google.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.blog_store = blog_store
        app.state.oauth = MagicMock()
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, UserStore, BlogStore], None, None]:
    """Yield (client, user_store, blog_store) backed by a per-module database.

    The bootstrap admin ("admin" / ADMIN_PASSWORD) is seeded before the
    client starts, as the real lifespan would do.
    """
    db_name = request.module.__name__.replace(".", "_")
    eng = create_db_engine(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    user_store = UserStore(eng)
    blog_store = BlogStore(eng)
    seed_admin(user_store, ADMIN_PASSWORD)

    app.router.lifespan_context = _patch_lifespan(user_store, blog_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, user_store, blog_store

    eng.dispose()


@pytest.fixture
def make_user(api_client) -> Callable[..., tuple[User, str]]:
    """Factory: create a user in the API's store and return (user, bearer token)."""
    _client, user_store, _blog_store = api_client

    def _make(username: str | None = None, role: str = ROLE_USER, password: str = "secret-pw") -> tuple[User, str]:
        user = user_store.create_user(
            User(
                username=username or unique_name(),
                role=role,
                hashed_password=hash_password(password),
            )
        )
        return user, create_access_token(user.id, user.username, user.role)

    return _make


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    return bearer


@pytest.fixture
def new_username() -> Callable[..., str]:
    return unique_name


@pytest.fixture
def admin_token(api_client) -> str:
    """Bearer token for the seeded bootstrap admin, obtained through /login."""
    client, _user_store, _blog_store = api_client
    resp = client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return resp.json()["token"]
