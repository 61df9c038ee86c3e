"""
tests/test_api_routes.py -- Integration tests for the auth HTTP endpoints.

These tests exercise the full stack: FastAPI routing -> dependency injection
-> CredentialService -> IdentityStore -> response model serialization and the
error envelope handlers in api/main.py.

Coverage:
  - POST /api/auth/register: 201, 400 (each rule and schema failures), 409,
    role normalization
  - POST /api/auth/login: 200, 401 for unknown email and wrong password alike,
    the {"error", "code"} body shape, 429 once the login limit is spent
  - GET /api/auth/me: 200 with a valid token; 401 without, forged or expired

Fixtures used (from conftest.py):
  - api_client: (client, token, owner) -- owner is "owner@example.com" /
    "ownerpass123" with role hotel_owner.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from auth.models import Identity
from auth.tokens import TokenIssuer
from core.config import get_settings

ApiClient = tuple[TestClient, str, Identity]


@pytest.fixture
def tight_login_limit(monkeypatch):
    """Drop the login limit to 2/minute for one test, with fresh counters."""
    monkeypatch.setattr(
        "api.limiter.get_settings",
        lambda: SimpleNamespace(login_rate_limit="2/minute", register_rate_limit="1000/minute"),
    )
    limiter.reset()
    yield
    limiter.reset()


def _register(client: TestClient, **overrides):
    body = {
        "email": "a@b.com",
        "password": "longenough1",
        "first_name": "A",
        "last_name": "B",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


class TestRegister:
    def test_register_then_duplicate(self, api_client: ApiClient) -> None:
        """First registration is 201 with role customer; the same email again is 409."""
        client, _token, _owner = api_client
        resp = _register(client)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["token"]
        assert data["user"]["email"] == "a@b.com"
        assert data["user"]["role"] == "customer"
        assert data["user"]["phone"] is None
        assert resp.headers["Cache-Control"] == "no-store"

        again = _register(client, first_name="Other")
        assert again.status_code == 409, again.text
        assert again.json()["code"] == "conflict"

    def test_user_payload_has_no_secret_fields(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        user = _register(client, email="nosecret@b.com").json()["user"]
        assert set(user) == {"id", "email", "first_name", "last_name", "phone", "role"}

    def test_role_is_normalized(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = _register(client, email="hotel@b.com", role="HotelOwner", phone="555-0100")
        assert resp.status_code == 201
        assert resp.json()["user"]["role"] == "hotel_owner"
        assert resp.json()["user"]["phone"] == "555-0100"

        resp = _register(client, email="bogus@b.com", role="bogus")
        assert resp.json()["user"]["role"] == "customer"

    def test_missing_fields_is_400(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = client.post("/api/auth/register", json={"email": "x@b.com"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_input"

    def test_bad_email_is_400(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = _register(client, email="not-an-email", password="short")
        assert resp.status_code == 400
        assert "email" in resp.json()["error"]

    def test_short_password_is_400(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = _register(client, email="short@b.com", password="1234567")
        assert resp.status_code == 400
        assert "8" in resp.json()["error"]

    def test_over_long_field_is_400(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = _register(client, email="long@b.com", first_name="A" * 101)
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_input"

    def test_null_field_is_400(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = _register(client, email=None)
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_input"

    def test_malformed_json_is_400(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = client.post(
            "/api/auth/register",
            content=b'{"email": "x@b.com",',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_input"


class TestLogin:
    def test_login_valid_credentials(self, api_client: ApiClient) -> None:
        client, _token, owner = api_client
        resp = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "ownerpass123"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["token"]
        assert data["user"]["id"] == owner.id
        assert data["user"]["role"] == "hotel_owner"
        assert resp.headers["Cache-Control"] == "no-store"

    def test_unknown_email_and_wrong_password_look_the_same(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        wrong = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrongpassword"})
        unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "ownerpass123"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["code"] == "bad_credentials"

    def test_register_then_login(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        assert _register(client, email="flow@b.com").status_code == 201
        resp = client.post("/api/auth/login", json={"email": "flow@b.com", "password": "longenough1"})
        assert resp.status_code == 200
        assert resp.json()["user"]["email"] == "flow@b.com"

    def test_error_body_is_plain_text(self, api_client: ApiClient) -> None:
        """`error` is a string a client can display directly; `code` is the reason."""
        client, _token, _owner = api_client
        resp = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrongpassword"})
        assert resp.json() == {"error": "Invalid email or password.", "code": "bad_credentials"}

    def test_login_is_rate_limited(self, api_client: ApiClient, tight_login_limit: None) -> None:
        client, _token, _owner = api_client
        body = {"email": "owner@example.com", "password": "wrongpassword"}
        statuses = [client.post("/api/auth/login", json=body).status_code for _ in range(3)]
        assert statuses == [401, 401, 429]
        limited = client.post("/api/auth/login", json=body)
        assert limited.json()["code"] == "rate_limited"
        assert limited.headers["Retry-After"]


class TestMe:
    def test_me_authenticated(self, api_client: ApiClient) -> None:
        client, token, owner = api_client
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["user"]["id"] == owner.id
        assert data["user"]["role"] == "hotel_owner"
        assert data["message"]
        assert "password_hash" not in data["user"]

    def test_me_with_token_from_register(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        token = _register(client, email="me@b.com", role="admin").json()["token"]
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["user"]["email"] == "me@b.com"
        assert resp.json()["user"]["role"] == "admin"

    def test_me_unauthenticated(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthorized"

    def test_me_forged_token(self, api_client: ApiClient) -> None:
        client, _token, owner = api_client
        forged = TokenIssuer("some-other-secret-that-is-long-enough!!", 3600).issue(owner.id, owner.email, "admin")
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401

    def test_me_expired_token(self, api_client: ApiClient) -> None:
        client, _token, owner = api_client
        issuer = TokenIssuer.from_settings(get_settings())
        issued_at = datetime.now(timezone.utc) - timedelta(seconds=issuer.expire_seconds + 1)
        expired = issuer.issue(owner.id, owner.email, owner.role, now=issued_at)
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
        assert resp.status_code == 401

    def test_me_token_for_unknown_identity(self, api_client: ApiClient) -> None:
        client, _token, _owner = api_client
        token = TokenIssuer.from_settings(get_settings()).issue("no-such-id", "x@b.com", "customer")
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
