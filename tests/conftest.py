"""
tests/conftest.py -- Shared test fixtures for DevConnect.

This module provides:
  - db_url: a fresh named shared-memory SQLite URI per test
  - stores: (UserStore, ProfileStore) on that database
  - make_user: factory fixture that inserts a user directly into the store
  - client: TestClient wired to isolated stores through a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool, and because the
two stores open separate engines that must see the same tables. The named URI
format (file:name?mode=memory&cache=shared&uri=true) shares one in-memory
instance across all connections in the same process.

Environment variables must be set before any project import so get_settings()
auto-generates SECRET_KEY in dev mode, accepts the TestClient host, and does
not rate-limit the login-heavy tests.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["*"]')
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from profiles.store import ProfileStore

TEST_PASSWORD = "testpass123"


def _shared_memory_url() -> str:
    return f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def _create_user(
    user_store: UserStore,
    email: str = "dev@example.com",
    password: str = TEST_PASSWORD,
    name: str = "Test Dev",
) -> str:
    """Insert a user with a real bcrypt hash and return its id."""
    return user_store.create_user(
        User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            avatar="//www.gravatar.com/avatar/test",
        )
    )


def _patch_lifespan(user_store: UserStore, profile_store: ProfileStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.profile_store = profile_store
        yield

    return test_lifespan


@pytest.fixture
def db_url() -> str:
    return _shared_memory_url()


@pytest.fixture
def stores(db_url: str) -> Generator[tuple[UserStore, ProfileStore], None, None]:
    user_store = UserStore(db_url)
    profile_store = ProfileStore(db_url)
    yield user_store, profile_store
    profile_store.close()
    user_store.close()


@pytest.fixture
def make_user(stores: tuple[UserStore, ProfileStore]) -> Callable[..., str]:
    """Return a factory that inserts a user into this test's database.

    Defaults: email dev@example.com, password testpass123, name "Test Dev".
    """
    user_store, _ = stores

    def factory(**kwargs) -> str:
        return _create_user(user_store, **kwargs)

    return factory


@pytest.fixture
def client(
    stores: tuple[UserStore, ProfileStore],
) -> Generator[tuple[TestClient, UserStore, ProfileStore], None, None]:
    """Yield (client, user_store, profile_store) against an isolated database.

    Tests hit real route handlers and middleware; only the lifespan is
    swapped so no file database is created.
    """
    user_store, profile_store = stores
    app.router.lifespan_context = _patch_lifespan(user_store, profile_store)
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client, user_store, profile_store


@pytest.fixture
def auth_headers(client: tuple[TestClient, UserStore, ProfileStore]) -> dict[str, str]:
    """Register the default user and return headers carrying its token."""
    _client, user_store, _profile_store = client
    uid = _create_user(user_store)
    return {"x-auth-token": create_access_token(uid)}
