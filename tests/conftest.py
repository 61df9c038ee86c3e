"""
tests/conftest.py -- Shared test fixtures for the booking portal auth tests.

This module provides:
  - hasher / issuer / store: unit-level collaborators (cheap bcrypt cost,
    fixed signing key, private in-memory SQLite)
  - service: a CredentialService wired to those collaborators
  - api_client: TestClient over the real app with an isolated identity store

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each api_client gets a fresh random name so modules never
see each other's identities.

The environment must be set before any api/auth/core import so get_settings()
auto-generates SECRET_KEY in dev mode, uses the minimum bcrypt cost, and does
not throttle the many logins a test module performs.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set these before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Identity, NewIdentity
from auth.passwords import PasswordHasher
from auth.service import CredentialService
from auth.store import IdentityStore
from auth.tokens import TokenIssuer
from core.config import get_settings

TEST_SECRET = "test-secret-key-with-at-least-32-characters"


# ---------------------------------------------------------------------------
# Unit-level collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET, expire_seconds=3600)


@pytest.fixture
def store() -> Generator[IdentityStore, None, None]:
    s = IdentityStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: IdentityStore, hasher: PasswordHasher, issuer: TokenIssuer) -> CredentialService:
    return CredentialService(store, hasher, issuer)


def make_identity(
    store: IdentityStore,
    hasher: PasswordHasher,
    email: str,
    password: str,
    role: str = "customer",
) -> Identity:
    """Insert an identity directly through the store (bypassing registration rules)."""
    return store.insert_identity(
        NewIdentity(
            email=email,
            password_hash=hasher.hash(password),
            first_name="Test",
            last_name="User",
            role=role,
        )
    )


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(store: IdentityStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store into app.state so routes never touch the on-disk
    database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.identity_store = store
        app.state.password_hasher = PasswordHasher(rounds=4)
        app.state.token_issuer = TokenIssuer.from_settings(get_settings())
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, Identity], None, None]:
    """Yield (client, token, identity) for API integration tests.

    identity is a pre-created hotel owner with password "ownerpass123";
    token is a valid session token for it.
    """
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    store = IdentityStore(db_url)

    owner = make_identity(store, PasswordHasher(rounds=4), "owner@example.com", "ownerpass123", role="hotel_owner")
    token = TokenIssuer.from_settings(get_settings()).issue(owner.id, owner.email, owner.role)

    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, owner

    store.close()
