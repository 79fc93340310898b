"""
Unit tests for authentication endpoints.
"""

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from jose import jwt

from conftest import TEST_PASSWORD
from newsroom.config import settings
from newsroom.models import User
from newsroom.storage import Storage
from newsroom.utils.security import create_access_token, decode_access_token, hash_password


def supabase_token(
    sub: str, email: str = None, audience: str = "authenticated", secret: str = None, issuer: str = None
) -> str:
    claims = {
        "sub": sub,
        "aud": audience,
        "role": "authenticated",
        "exp": datetime.utcnow() + timedelta(hours=1)
    }
    if email:
        claims["email"] = email
    if issuer:
        claims["iss"] = issuer
    return jwt.encode(claims, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256")


@pytest.mark.unit
@pytest.mark.auth
class TestUserRegistration:
    """Test user registration endpoint."""

    def test_register_new_user_success(self, client: TestClient, storage: Storage):
        """Test successful user registration."""
        response = client.post(
            "/api/auth/register",
            json={
                "username": "newsdesk",
                "email": "desk@example.com",
                "password": "SecurePassword123!",
                "description": "Local reporting"
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "newsdesk"
        assert data["user"]["description"] == "Local reporting"
        assert "hashed_password" not in data["user"]

        user = storage.get_user_by_username("newsdesk")
        assert user is not None
        assert user.hashed_password != "SecurePassword123!"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "newsdesk"

    def test_register_without_email(self, client: TestClient):
        """Email is optional."""
        response = client.post(
            "/api/auth/register",
            json={"username": "anon_writer", "password": "SecurePassword123!"}
        )

        assert response.status_code == 201
        assert response.json()["user"]["email"] is None

    def test_register_duplicate_username(self, client: TestClient, test_user: User):
        response = client.post(
            "/api/auth/register",
            json={"username": test_user.username, "password": "SecurePassword123!"}
        )

        assert response.status_code == 400
        assert "already taken" in response.json()["detail"].lower()

    def test_register_duplicate_email(self, client: TestClient, test_user: User):
        response = client.post(
            "/api/auth/register",
            json={"username": "someone", "email": test_user.email, "password": "SecurePassword123!"}
        )

        assert response.status_code == 400
        assert "already registered" in response.json()["detail"].lower()

    def test_register_weak_password(self, client: TestClient):
        """Long enough but missing character classes."""
        response = client.post(
            "/api/auth/register",
            json={"username": "newsdesk", "password": "password123"}
        )

        assert response.status_code == 400
        assert "password" in response.json()["detail"].lower()

    def test_register_short_password(self, client: TestClient):
        response = client.post(
            "/api/auth/register",
            json={"username": "newsdesk", "password": "Ab1!"}
        )

        assert response.status_code == 422

    def test_register_invalid_username(self, client: TestClient):
        response = client.post(
            "/api/auth/register",
            json={"username": "1reporter", "password": "SecurePassword123!"}
        )

        assert response.status_code == 422

    def test_register_invalid_email(self, client: TestClient):
        response = client.post(
            "/api/auth/register",
            json={"username": "newsdesk", "email": "not-an-email", "password": "SecurePassword123!"}
        )

        assert response.status_code == 422


@pytest.mark.unit
@pytest.mark.auth
class TestUserLogin:
    """Test user login endpoint."""

    def test_login_with_username(self, client: TestClient, test_user: User):
        response = client.post(
            "/api/auth/login",
            json={"username": test_user.username, "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["last_login"] is not None

        payload = decode_access_token(data["access_token"])
        assert payload["sub"] == str(test_user.id)
        assert payload["username"] == test_user.username

    def test_login_with_email(self, client: TestClient, test_user: User):
        response = client.post(
            "/api/auth/login",
            json={"username": test_user.email, "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id

    def test_two_logins_get_distinct_sessions(self, client: TestClient, test_user: User):
        body = {"username": test_user.username, "password": TEST_PASSWORD}
        first = client.post("/api/auth/login", json=body).json()["access_token"]
        second = client.post("/api/auth/login", json=body).json()["access_token"]

        assert first != second

    def test_login_wrong_password(self, client: TestClient, test_user: User):
        response = client.post(
            "/api/auth/login",
            json={"username": test_user.username, "password": "Wrong!Password1"}
        )

        assert response.status_code == 401
        assert "invalid credentials" in response.json()["detail"].lower()

    def test_login_nonexistent_user(self, client: TestClient):
        response = client.post(
            "/api/auth/login",
            json={"username": "ghost", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401

    def test_login_inactive_user(self, client: TestClient, storage: Storage):
        user = storage.create_user(username="retired", hashed_password=hash_password(TEST_PASSWORD))
        storage.update_user(user.id, is_active=False)

        response = client.post(
            "/api/auth/login",
            json={"username": "retired", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401
        assert "deactivated" in response.json()["detail"].lower()

    def test_login_supabase_only_user(self, client: TestClient, storage: Storage):
        """Users created through Supabase have no local password."""
        storage.create_user(username="oauth_user", supabase_uid="uid-1")

        response = client.post(
            "/api/auth/login",
            json={"username": "oauth_user", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401


@pytest.mark.unit
@pytest.mark.auth
class TestCurrentUser:
    """Test current user endpoints."""

    def test_get_current_user_success(self, client: TestClient, auth_headers: dict, test_user: User):
        response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == test_user.username
        assert data["email"] == test_user.email
        assert data["is_active"] is True

    def test_get_current_user_no_token(self, client: TestClient):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert "not authenticated" in response.json()["detail"].lower()

    def test_get_current_user_invalid_token(self, client: TestClient):
        response = client.get(
            "/api/auth/me",
            headers={"Authorization": "Bearer invalid_token_here"}
        )

        assert response.status_code == 401

    def test_token_without_session_rejected(self, client: TestClient, test_user: User):
        """A correctly signed token is useless unless a session backs it."""
        token = create_access_token({"sub": str(test_user.id), "username": test_user.username})

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert "invalid session" in response.json()["detail"].lower()

    def test_expired_session_rejected(self, client: TestClient, storage: Storage, test_user: User):
        token = create_access_token({"sub": str(test_user.id), "username": test_user.username})
        storage.create_session(test_user.id, token, expires_at=datetime.utcnow() - timedelta(minutes=1))

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert "expired" in response.json()["detail"].lower()
        assert storage.get_session(token) is None

    def test_verify_token(self, client: TestClient, auth_headers: dict, test_user: User):
        response = client.get("/api/auth/verify", headers=auth_headers)

        assert response.status_code == 200
        assert test_user.username in response.json()["detail"]

    def test_user_endpoint_requires_auth(self, client: TestClient):
        assert client.get("/api/user").status_code == 401


@pytest.mark.unit
@pytest.mark.auth
class TestLogout:
    """Test user logout endpoint."""

    def test_logout_success(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/auth/logout", headers=auth_headers)

        assert response.status_code == 200
        assert "success" in response.json()["message"].lower()

        assert client.get("/api/auth/me", headers=auth_headers).status_code == 401

    def test_logout_twice(self, client: TestClient, auth_headers: dict):
        client.post("/api/auth/logout", headers=auth_headers)
        response = client.post("/api/auth/logout", headers=auth_headers)

        assert response.status_code == 404

    def test_logout_no_token(self, client: TestClient):
        response = client.post("/api/auth/logout")

        assert response.status_code == 401


@pytest.mark.unit
@pytest.mark.auth
class TestSupabaseCallback:
    """Test the Supabase identity bridge."""

    def test_first_sign_in_creates_user(self, client: TestClient, storage: Storage):
        token = supabase_token("11111111-aaaa", email="jane.doe@example.com")

        response = client.post("/api/auth/supabase-callback", json={"accessToken": token})

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["username"] == "jane_doe"
        assert data["user"]["email"] == "jane.doe@example.com"
        assert storage.get_user_by_supabase_uid("11111111-aaaa").id == data["user"]["id"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200

    def test_repeat_sign_in_reuses_user(self, client: TestClient):
        token = supabase_token("22222222-bbbb", email="reporter@example.com")

        first = client.post("/api/auth/supabase-callback", json={"access_token": token}).json()
        second = client.post("/api/auth/supabase-callback", json={"access_token": token}).json()

        assert first["user"]["id"] == second["user"]["id"]
        assert first["access_token"] != second["access_token"]

    def test_username_collision_gets_suffix(self, client: TestClient, test_user: User):
        token = supabase_token("33333333-cccc", email=f"{test_user.username}@elsewhere.org")

        response = client.post("/api/auth/supabase-callback", json={"access_token": token})

        assert response.status_code == 200
        assert response.json()["user"]["username"] == f"{test_user.username}2"

    def test_links_existing_account_by_email(self, client: TestClient, storage: Storage, test_user: User):
        token = supabase_token("44444444-dddd", email=test_user.email)

        response = client.post("/api/auth/supabase-callback", json={"access_token": token})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id
        assert storage.get_user(test_user.id).supabase_uid == "44444444-dddd"

    def test_does_not_relink_account_of_another_identity(
        self, client: TestClient, storage: Storage, test_user: User
    ):
        storage.update_user(test_user.id, supabase_uid="77777777-first")
        token = supabase_token("77777777-second", email=test_user.email)

        response = client.post("/api/auth/supabase-callback", json={"access_token": token})

        assert response.status_code == 401
        assert "different Supabase account" in response.json()["detail"]
        assert storage.get_user(test_user.id).supabase_uid == "77777777-first"
        assert storage.get_user_by_supabase_uid("77777777-second") is None

    def test_inactive_account_is_not_linked(
        self, client: TestClient, storage: Storage, test_user: User
    ):
        storage.update_user(test_user.id, is_active=False)
        token = supabase_token("88888888-gggg", email=test_user.email)

        response = client.post("/api/auth/supabase-callback", json={"access_token": token})

        assert response.status_code == 401
        assert storage.get_user(test_user.id).supabase_uid is None

    def test_issuer_checked_when_project_url_set(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_URL", "https://newsroom.supabase.co/")
        good = supabase_token("99999999-hhhh", email="a@example.com", issuer="https://newsroom.supabase.co/auth/v1")
        foreign = supabase_token("99999999-iiii", email="b@example.com", issuer="https://other.supabase.co/auth/v1")

        assert client.post("/api/auth/supabase-callback", json={"access_token": good}).status_code == 200
        assert client.post("/api/auth/supabase-callback", json={"access_token": foreign}).status_code == 401

    def test_invalid_signature_rejected(self, client: TestClient):
        token = supabase_token("55555555-eeee", email="x@example.com", secret="wrong-secret")

        response = client.post("/api/auth/supabase-callback", json={"access_token": token})

        assert response.status_code == 401

    def test_wrong_audience_rejected(self, client: TestClient):
        token = supabase_token("66666666-ffff", email="x@example.com", audience="anon")

        response = client.post("/api/auth/supabase-callback", json={"access_token": token})

        assert response.status_code == 401

    def test_not_configured(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", "")

        response = client.post("/api/auth/supabase-callback", json={"access_token": "anything"})

        assert response.status_code == 503
