# -*- coding: utf-8 -*-
"""
Tests for authentication.
"""
from datetime import datetime, timedelta, timezone

import jwt

from jobs_blog.auth import (
    SESSION_ALGORITHM,
    SESSION_COOKIE_NAME,
    create_session_token,
    hash_password,
    verify_password,
    verify_session_token,
)
from jobs_blog.config import settings


class TestPasswords:
    """Tests for password hashing."""

    def test_hash_and_verify(self):
        """Should verify the right password only."""
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong", hashed)


class TestSessionTokens:
    """Tests for signed session tokens."""

    def test_round_trip(self):
        """A fresh token should verify to the same session."""
        token, expiry = create_session_token("user-1", "admin@example.com")
        session = verify_session_token(token)
        assert session.user_id == "user-1"
        assert session.email == "admin@example.com"
        assert abs((session.exp - expiry).total_seconds()) < 1

    def test_tampered_token_rejected(self):
        """Tokens signed with another key should be rejected."""
        token, _ = create_session_token("user-1", "admin@example.com")
        forged = jwt.encode(
            {**jwt.decode(token, options={"verify_signature": False}), "email": "evil@example.com"},
            "another-secret",
            algorithm=SESSION_ALGORITHM,
        )
        assert verify_session_token(forged) is None

    def test_expired_token_rejected(self):
        """Expired tokens should be rejected."""
        expired = jwt.encode(
            {
                "sub": "user-1",
                "email": "admin@example.com",
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            },
            settings.SESSION_SECRET_KEY,
            algorithm=SESSION_ALGORITHM,
        )
        assert verify_session_token(expired) is None

    def test_garbage_rejected(self):
        assert verify_session_token("not.a.token") is None


class TestAuthRoutes:
    """Tests for /auth endpoints."""

    def test_first_registration_is_open(self, client):
        """The first admin should register without a session."""
        response = client.post(
            "/auth/register", json={"email": "first@example.com", "password": "longenough"}
        )
        assert response.status_code == 201

    def test_short_password_rejected(self, client):
        """Passwords under 8 characters should be rejected."""
        response = client.post(
            "/auth/register", json={"email": "first@example.com", "password": "short"}
        )
        assert response.status_code == 422

    def test_registration_closed_after_first_admin(self, client):
        """Anonymous registration should close once an admin exists."""
        client.post("/auth/register", json={"email": "first@example.com", "password": "longenough"})
        response = client.post(
            "/auth/register", json={"email": "second@example.com", "password": "longenough"}
        )
        assert response.status_code == 403

    def test_admin_can_register_another(self, session_client):
        """A logged-in admin should add accounts."""
        session_client.post("/auth/register", json={"email": "first@example.com", "password": "longenough"})
        response = session_client.post(
            "/auth/register", json={"email": "second@example.com", "password": "longenough"}
        )
        assert response.status_code == 201

    def test_duplicate_registration(self, session_client):
        """An existing email should return 400."""
        payload = {"email": "first@example.com", "password": "longenough"}
        session_client.post("/auth/register", json=payload)
        response = session_client.post("/auth/register", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Admin user already exists"

    def test_login_sets_cookie_and_grants_access(self, client):
        """Login should set the session cookie."""
        client.post("/auth/register", json={"email": "admin@example.com", "password": "longenough"})

        response = client.post(
            "/auth/login", json={"email": "admin@example.com", "password": "longenough"}
        )

        assert response.status_code == 200
        assert response.json()["token"]
        assert SESSION_COOKIE_NAME in response.cookies
        assert client.get("/admin/api/stats").status_code == 200

    def test_bearer_token_grants_access(self, client):
        """The login token should work as a Bearer header."""
        client.post("/auth/register", json={"email": "admin@example.com", "password": "longenough"})
        token = client.post(
            "/auth/login", json={"email": "admin@example.com", "password": "longenough"}
        ).json()["token"]
        client.cookies.clear()

        response = client.get("/admin/api/stats", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_wrong_password(self, client):
        """A wrong password should return 401."""
        client.post("/auth/register", json={"email": "admin@example.com", "password": "longenough"})
        response = client.post(
            "/auth/login", json={"email": "admin@example.com", "password": "wrong-password"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_unknown_user(self, client):
        """An unknown email should return 401."""
        response = client.post(
            "/auth/login", json={"email": "nobody@example.com", "password": "whatever1"}
        )
        assert response.status_code == 401

    def test_status_anonymous(self, client):
        assert client.get("/auth/status").json() == {"authenticated": False}

    def test_status_logged_in(self, session_client):
        """Status should report the session email."""
        data = session_client.get("/auth/status").json()
        assert data["authenticated"] is True
        assert data["email"] == "admin@example.com"

    def test_logout_clears_cookie(self, session_client):
        """Logout should redirect and clear the cookie."""
        response = session_client.get("/auth/logout", follow_redirects=False)
        assert response.status_code == 302
        assert SESSION_COOKIE_NAME in response.headers.get("set-cookie", "")
