"""
tests/test_api_auth.py -- Integration tests for /api/auth/* endpoints.

Covers:
  - POST /api/auth/register: 201, reserved "admin" in any case, duplicates
  - POST /api/auth/login: token claims, shared bad-credentials error,
    social-login hint, no-store caching
  - GET  /api/auth/me: valid, missing, and expired tokens
  - GET  /api/auth/google/url: unconfigured and configured provider
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from auth.models import User
from auth.tokens import create_access_token, decode_access_token
from core.config import get_settings


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------


def test_register_creates_user(api_client, new_username):
    client, user_store, _ = api_client
    name = new_username()
    resp = client.post("/api/auth/register", json={"username": name, "password": "pw-123"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["username"] == name
    assert data["role"] == "user"
    assert "hashed_password" not in data
    assert "password" not in data
    assert user_store.get_by_username(name).id == data["id"]


@pytest.mark.parametrize("name", ["admin", "Admin", "ADMIN", "aDmIn"])
def test_register_reserved_username(api_client, name):
    client, user_store, _ = api_client
    before = user_store.count_users()
    resp = client.post("/api/auth/register", json={"username": name, "password": "pw"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "reserved_username"
    assert user_store.count_users() == before


def test_register_duplicate_username(api_client, new_username):
    client, _, _ = api_client
    name = new_username()
    assert client.post("/api/auth/register", json={"username": name, "password": "a"}).status_code == 201
    resp = client.post("/api/auth/register", json={"username": name, "password": "b"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "conflict"
    assert resp.json()["error"]["message"] == "Username already exists."


def test_register_missing_password_is_validation_error(api_client, new_username):
    client, _, _ = api_client
    resp = client.post("/api/auth/register", json={"username": new_username()})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


@pytest.mark.parametrize("email", ["nope", "a,b@c", "two@@example.com", "spaces in@example.com"])
def test_register_rejects_malformed_email(api_client, new_username, email):
    client, _, _ = api_client
    resp = client.post("/api/auth/register", json={"username": new_username(), "password": "pw", "email": email})
    assert resp.status_code == 422


@pytest.mark.parametrize("password", ["\u00e9" * 37, "\u00e9" * 72, "x" * 73])
def test_register_password_over_72_bytes_is_validation_error(api_client, new_username, password):
    client, user_store, _ = api_client
    name = new_username()
    resp = client.post("/api/auth/register", json={"username": name, "password": password})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"
    assert user_store.get_by_username(name) is None


def test_register_password_of_exactly_72_bytes(api_client, new_username):
    client, _, _ = api_client
    name = new_username()
    password = "\u00e9" * 36
    assert client.post("/api/auth/register", json={"username": name, "password": password}).status_code == 201
    assert client.post("/api/auth/login", json={"username": name, "password": password}).status_code == 200


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def test_login_returns_token_with_claims(api_client, new_username):
    client, _, _ = api_client
    name = new_username()
    created = client.post("/api/auth/register", json={"username": name, "password": "pw-123"}).json()

    resp = client.post("/api/auth/login", json={"username": name, "password": "pw-123"})
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "no-store"
    data = resp.json()
    assert data["user"] == {"id": created["id"], "username": name, "role": "user"}

    claims = decode_access_token(data["token"])
    assert (claims.id, claims.username, claims.role) == (created["id"], name, "user")


def test_login_bootstrap_admin(admin_token):
    assert decode_access_token(admin_token).role == "admin"


def test_login_wrong_password_and_unknown_user_look_the_same(api_client, new_username):
    client, _, _ = api_client
    name = new_username()
    client.post("/api/auth/register", json={"username": name, "password": "right"})

    wrong = client.post("/api/auth/login", json={"username": name, "password": "wrong"})
    unknown = client.post("/api/auth/login", json={"username": new_username("ghost"), "password": "right"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()
    assert wrong.json()["error"]["code"] == "bad_credentials"
    assert wrong.headers["Cache-Control"] == "no-store"


def test_login_google_only_account(api_client, new_username):
    client, user_store, _ = api_client
    name = new_username("google")
    user_store.create_user(User(username=name, google_id=f"sub-{name}"))

    resp = client.post("/api/auth/login", json={"username": name, "password": "anything"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "social_login_required"


# ---------------------------------------------------------------------------
# Me
# ---------------------------------------------------------------------------


def test_me_returns_identity(api_client, make_user, auth_headers):
    client, _, _ = api_client
    user, token = make_user()
    resp = client.get("/api/auth/me", headers=auth_headers(token))
    assert resp.status_code == 200
    assert resp.json() == {"id": user.id, "username": user.username, "role": "user"}


def test_me_token_for_unknown_account(api_client, auth_headers):
    client, _, _ = api_client
    token = create_access_token("0" * 32, "nobody", "user")
    resp = client.get("/api/auth/me", headers=auth_headers(token))
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "invalid_token"


def test_me_requires_token(api_client):
    client, _, _ = api_client
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"


def test_me_expired_token(api_client, make_user, auth_headers):
    client, _, _ = api_client
    user, _ = make_user()
    expired = create_access_token(user.id, user.username, user.role, expires_delta=timedelta(hours=-1))
    resp = client.get("/api/auth/me", headers=auth_headers(expired))
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "token_expired"


def test_me_garbage_token(api_client, auth_headers):
    client, _, _ = api_client
    resp = client.get("/api/auth/me", headers=auth_headers("not-a-token"))
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "invalid_token"


# ---------------------------------------------------------------------------
# Google authorization URL
# ---------------------------------------------------------------------------


def test_google_url_unconfigured(api_client, monkeypatch):
    client, _, _ = api_client
    monkeypatch.setattr(get_settings(), "google_client_id", "")
    resp = client.get("/api/auth/google/url")
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "oauth_not_configured"


def test_google_url_configured(api_client, monkeypatch):
    client, _, _ = api_client
    settings = get_settings()
    monkeypatch.setattr(settings, "google_client_id", "client-id.apps.googleusercontent.com")

    google = MagicMock()
    google.create_authorization_url = AsyncMock(
        return_value={"url": "https://accounts.google.com/o/oauth2/v2/auth?state=xyz", "state": "xyz"}
    )
    google.save_authorize_data = AsyncMock()
    oauth = MagicMock()
    oauth.create_client.return_value = google
    monkeypatch.setattr(client.app.state, "oauth", oauth)

    resp = client.get("/api/auth/google/url")

    assert resp.status_code == 200
    assert resp.json() == {"url": "https://accounts.google.com/o/oauth2/v2/auth?state=xyz"}
    oauth.create_client.assert_called_once_with("google")
    args, kwargs = google.create_authorization_url.call_args
    assert args[0] == settings.google_redirect_uri
    assert kwargs["prompt"] == "select_account"
    google.save_authorize_data.assert_awaited_once()
    assert google.save_authorize_data.call_args.kwargs["state"] == "xyz"


def test_google_url_discovery_failure_is_upstream_error(api_client, monkeypatch):
    client, _, _ = api_client
    monkeypatch.setattr(get_settings(), "google_client_id", "client-id.apps.googleusercontent.com")

    google = MagicMock()
    google.create_authorization_url = AsyncMock(side_effect=httpx.ConnectError("no route to host"))
    google.save_authorize_data = AsyncMock()
    oauth = MagicMock()
    oauth.create_client.return_value = google
    monkeypatch.setattr(client.app.state, "oauth", oauth)

    resp = client.get("/api/auth/google/url")

    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "upstream_failure"
    google.save_authorize_data.assert_not_called()
