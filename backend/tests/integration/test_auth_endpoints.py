"""
Integration Tests for Authentication Endpoints

Tests the full authentication flow with a real database and HTTP requests.
Uses FastAPI TestClient to simulate API calls.
"""

from datetime import timedelta

import pytest

from quill.config import settings
from quill.core.security import issue_session_token, verify_session_token

COOKIE = settings.SESSION_COOKIE_NAME


def register(client, username="alice1", email="a@example.com", password="password123"):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def login(client, email="a@example.com", password="password123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


class TestRegistration:
    """Integration tests for user registration endpoint."""

    def test_register_success(self, client):
        response = register(client)

        assert response.status_code == 201
        assert response.json() == {"message": "User registered successfully"}

    def test_register_duplicate_email(self, client):
        register(client)
        response = register(client, username="different")

        assert response.status_code == 400
        assert response.json()["error"] == "Email already registered"
        assert response.json()["error_code"] == "CONFLICT"

    def test_register_duplicate_email_other_case(self, client):
        register(client)
        response = register(client, username="different", email="A@Example.com")

        assert response.status_code == 400
        assert response.json()["error"] == "Email already registered"

    def test_register_duplicate_username(self, client):
        register(client)
        response = register(client, email="other@example.com")

        assert response.status_code == 400
        assert response.json()["error"] == "Username already taken"

    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"username": "abc", "email": "a@example.com", "password": "password123"},
             "Username must be between 4-20 characters"),
            ({"username": "alice1", "email": "not-an-email", "password": "password123"},
             "Invalid email"),
            ({"username": "alice1", "email": "a@example.com", "password": "short"},
             "Password must be at least 8 characters"),
            ({"email": "a@example.com", "password": "password123"},
             "Username must be between 4-20 characters"),
        ],
    )
    def test_register_validation(self, client, payload, message):
        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == message
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("password", ["p" * 80, "é" * 40])
    def test_register_rejects_password_over_72_bytes(self, client, password):
        response = register(client, password=password)

        assert response.status_code == 400
        assert response.json()["error"] == "Password must be at most 72 bytes"

    def test_72_byte_password_round_trip(self, client):
        password = "é" * 36
        assert register(client, password=password).status_code == 201

        assert login(client, password=password).status_code == 200
        assert login(client, password=password[:-1]).status_code == 401

    def test_register_does_not_set_cookie(self, client):
        response = register(client)
        assert COOKIE not in response.cookies


class TestLogin:
    """Integration tests for login endpoint."""

    def test_login_success_sets_cookie(self, client):
        register(client)
        response = login(client)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["username"] == "alice1"
        assert data["user"]["email"] == "a@example.com"
        assert "password_hash" not in data["user"]
        assert "token" not in data

        token = response.cookies.get(COOKIE)
        assert token
        assert verify_session_token(token) == data["user"]["id"]

    def test_login_cookie_attributes(self, client):
        register(client)
        response = login(client)

        header = response.headers["set-cookie"]
        assert "HttpOnly" in header
        assert "Path=/" in header
        assert "SameSite=lax" in header
        assert f"Max-Age={settings.session_max_age_seconds}" in header
        assert "Secure" not in header  # TestClient talks plain http

    def test_login_secure_behind_tls_proxy(self, client):
        register(client)
        response = client.post(
            "/api/auth/login",
            json={"email": "a@example.com", "password": "password123"},
            headers={"X-Forwarded-Proto": "https"},
        )

        assert "Secure" in response.headers["set-cookie"]

    def test_login_email_case_insensitive(self, client):
        register(client)
        assert login(client, email="A@EXAMPLE.com").status_code == 200

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, client):
        register(client)

        wrong_password = login(client, password="wrongpassword")
        unknown_email = login(client, email="nobody@example.com")

        assert wrong_password.status_code == unknown_email.status_code == 401
        strip = lambda body: {k: v for k, v in body.items() if k != "request_id"}  # noqa: E731
        assert strip(wrong_password.json()) == strip(unknown_email.json())
        assert wrong_password.json()["error"] == "Invalid email or password"
        assert COOKIE not in wrong_password.cookies

    def test_login_case_sensitive_password(self, client):
        register(client)
        assert login(client, password="PASSWORD123").status_code == 401

    @pytest.mark.parametrize("payload", [{}, {"email": "a@example.com"}, {"password": "password123"}])
    def test_login_missing_fields(self, client, payload):
        response = client.post("/api/auth/login", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Email and password are required"


class TestSession:
    """Session cookie and /me behaviour."""

    def test_me_after_login(self, client):
        register(client)
        login(client)

        response = client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["username"] == "alice1"
        assert response.json()["role"] == "user"

    def test_me_without_session_is_null(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json() is None

    def test_bearer_token_accepted(self, client):
        register(client)
        user_id = login(client).json()["user"]["id"]
        client.cookies.clear()

        response = client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {issue_session_token(user_id)}"}
        )

        assert response.json()["id"] == user_id

    def test_expired_session_rejected_on_protected_route(self, client):
        register(client)
        user_id = login(client).json()["user"]["id"]
        client.cookies.clear()
        expired = issue_session_token(user_id, ttl=timedelta(seconds=-5))

        response = client.post(
            "/api/blogs",
            json={"title": "t", "content": "c"},
            headers={"Cookie": f"{COOKIE}={expired}"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Session expired"

    def test_tampered_session_rejected(self, client):
        register(client)
        login(client)
        header, payload, signature = client.cookies.get(COOKIE).split(".")
        client.cookies.clear()
        flipped = ("B" if signature[0] == "A" else "A") + signature[1:]

        response = client.post(
            "/api/blogs",
            json={"title": "t", "content": "c"},
            headers={"Cookie": f"{COOKIE}={header}.{payload}.{flipped}"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid session"

    def test_protected_route_without_session(self, client):
        response = client.post("/api/blogs", json={"title": "t", "content": "c"})

        assert response.status_code == 401
        assert response.json()["error"] == "Not authenticated"


class TestLogout:
    def test_logout_clears_cookie(self, client):
        register(client)
        login(client)
        assert client.cookies.get(COOKIE)

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}
        header = response.headers["set-cookie"]
        assert header.startswith(f"{COOKIE}=")
        assert "Max-Age=-1" in header
        assert "HttpOnly" in header
        assert "Path=/" in header

        assert client.get("/api/auth/me").json() is None

    def test_logout_without_session_succeeds(self, client):
        response = client.post("/api/auth/logout")
        assert response.status_code == 200


class TestExternalIdentityDisabled:
    def test_external_endpoint_404_in_password_mode(self, client):
        response = client.post("/api/auth/external", json={"assertion": "whatever"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestFullAuthFlow:
    def test_register_then_login_identifies_same_user(self, client, sync_engine):
        from sqlalchemy import text

        register(client, username="roundtrip", email="rt@example.com", password="longenough1")
        with sync_engine.connect() as conn:
            stored_id, stored_hash = conn.execute(
                text("SELECT id, password_hash FROM users WHERE username = 'roundtrip'")
            ).one()

        assert stored_hash.startswith("$2b$")
        assert "longenough1" not in stored_hash

        response = login(client, email="rt@example.com", password="longenough1")
        assert response.json()["user"]["id"] == stored_id
        assert verify_session_token(response.cookies.get(COOKIE)) == stored_id

    def test_requests_carry_request_id(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]
