"""
tests/conftest.py -- Shared test fixtures for MedMachines integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + machines
  - _patch_lifespan(): wires test stores and services into app.state,
    bypassing real startup
  - api_client: TestClient plus a registered user's JWT, for API tests
  - web_client: TestClient with follow_redirects=False for web route tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.

The environment must be set before any project import: get_settings() is
cached on first use, and auth.tokens / api.main read it at import time.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")
os.environ.setdefault("DATABASE_URL", "sqlite:///file:medmachines_default?mode=memory&cache=shared&uri=true")

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.models import User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from machines.service import MachineService
from machines.store import MachineStore
from web.state import ViewStateStore
from web.taxonomy import load_taxonomy

TEST_EMAIL = "tester@example.com"
TEST_PASSWORD = "testpass123"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, MachineStore]:
    """Create isolated named shared-memory SQLite stores.

    A random component keeps modules that reuse the same suffix apart.
    """
    tag = f"{db_suffix}_{uuid.uuid4().hex[:8]}"
    user_store = UserStore(db_url=f"sqlite:///file:test_users_{tag}?mode=memory&cache=shared&uri=true")
    machine_store = MachineStore(db_url=f"sqlite:///file:test_machines_{tag}?mode=memory&cache=shared&uri=true")
    return user_store, machine_store


def _patch_lifespan(user_store: UserStore, machine_store: MachineStore, require_api_auth: bool = False):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.machine_store = machine_store
        app.state.auth_service = AuthService(user_store)
        app.state.machine_service = MachineService(machine_store)
        app.state.require_api_auth = require_api_auth
        app.state.taxonomy = load_taxonomy()
        app.state.view_states = ViewStateStore(max_sessions=50)
        await asyncio.sleep(0)
        yield

    return test_lifespan


def _seed_user(user_store: UserStore) -> str:
    user_store.create_user(User(email=TEST_EMAIL, hashed_password=hash_password(TEST_PASSWORD)))
    return create_access_token(TEST_EMAIL, expire_seconds=3600)


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, token) for API integration tests.

    The user TEST_EMAIL / TEST_PASSWORD exists before the client starts.
    """
    user_store, machine_store = _make_test_stores("api")
    token = _seed_user(user_store)
    app.router.lifespan_context = _patch_lifespan(user_store, machine_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token

    user_store.close()
    machine_store.close()


@pytest.fixture(scope="module")
def web_client() -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, token) for web route tests.

    follow_redirects=False so tests can assert on redirect locations.
    """
    user_store, machine_store = _make_test_stores("web")
    token = _seed_user(user_store)
    app.router.lifespan_context = _patch_lifespan(user_store, machine_store)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client, token

    user_store.close()
    machine_store.close()
