"""
tests/conftest.py -- Shared test fixtures for the auth service tests.

This module provides:
  - config / hasher / store / service: unit-level fixtures over an in-memory
    SQLite UserStore and a low-cost CredentialConfig
  - api_client: TestClient running the real FastAPI lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient because route handlers run in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Unit fixtures stay on one thread, so plain :memory: is fine there.

Environment variables must be set before any api/ import so get_settings()
sees test peppers and a test JWT secret instead of raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import timedelta

# CRITICAL: set before importing api.main so the lifespan's get_settings()
# call picks these up.
os.environ.setdefault("PEPPERS", "test-pepper-current,test-pepper-retired")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-for-testing-only")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite:///file:test_auth_api?mode=memory&cache=shared&uri=true")

import pytest
from fastapi.testclient import TestClient

from auth.models import CredentialConfig
from auth.passwords import CredentialHasher
from auth.service import AuthService
from auth.store import UserStore

TEST_JWT_SECRET = "test-jwt-secret-key-for-testing-only"
CURRENT_PEPPER = "test-pepper-current"
RETIRED_PEPPER = "test-pepper-retired"


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> CredentialConfig:
    """Two peppers (current first), cost 4 so bcrypt stays fast in tests."""
    return CredentialConfig(
        cost_factor=4,
        peppers=(CURRENT_PEPPER, RETIRED_PEPPER),
        token_secret=TEST_JWT_SECRET,
        token_lifetime=timedelta(hours=1),
    )


@pytest.fixture
def hasher(config: CredentialConfig) -> CredentialHasher:
    return CredentialHasher(config)


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: UserStore, config: CredentialConfig) -> AuthService:
    return AuthService(store, config)


# ---------------------------------------------------------------------------
# Integration fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app and lifespan.

    The lifespan builds the UserStore from DATABASE_URL (a named in-memory
    DB) and the AuthService from the test PEPPERS / JWT_SECRET. Tests use
    unique usernames because the DB is shared within a module.
    """
    from api.main import app

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
