# tests/v1/test_auth.py
"""Tests for authentication endpoints."""

from __future__ import annotations

from fastapi import status

from civic_voice.core.security import decode_access_token
from civic_voice.models import User


def _register_payload(**overrides) -> dict:
    payload = {
        "email": "alice@example.com",
        "username": "alice",
        "password": "alice123",
        "fullName": "Alice Anders",
        "bio": "Civic minded",
        "interests": ["Politics", "Education"],
    }
    payload.update(overrides)
    return payload


def test_register_user_success(client, db_session) -> None:
    """Registration returns a token and the new profile."""
    response = client.post("/api/v1/auth/register", json=_register_payload())
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()

    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "alice@example.com"
    assert user["fullName"] == "Alice Anders"
    assert user["role"] == "user"
    assert user["isVerified"] is False
    assert user["stats"] == {"totalPosts": 0, "totalVotes": 0, "followers": 0, "following": 0}
    assert "passwordHash" not in user

    claims = decode_access_token(body["data"]["token"])
    assert claims.subject == user["id"]
    assert claims.role == "user"


def test_register_ignores_requested_role(client, db_session) -> None:
    """Self-registration can never provision an elevated role."""
    response = client.post("/api/v1/auth/register", json=_register_payload(role="admin"))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["user"]["role"] == "user"


def test_register_stores_hash_not_password(client, db_session) -> None:
    response = client.post("/api/v1/auth/register", json=_register_payload())
    user = db_session.get(User, response.json()["data"]["user"]["id"])
    assert user.password_hash != "alice123"
    assert user.password_hash.startswith("$2")


def test_register_duplicate_email_case_insensitive(client) -> None:
    first = client.post("/api/v1/auth/register", json=_register_payload())
    assert first.status_code == status.HTTP_201_CREATED

    second = client.post(
        "/api/v1/auth/register",
        json=_register_payload(email="ALICE@Example.com", username="alice2"),
    )
    assert second.status_code == status.HTTP_409_CONFLICT
    assert second.json() == {
        "success": False,
        "message": "An account with that email already exists",
    }


def test_register_duplicate_username_case_insensitive(client) -> None:
    client.post("/api/v1/auth/register", json=_register_payload())
    response = client.post(
        "/api/v1/auth/register",
        json=_register_payload(email="other@example.com", username="ALICE"),
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "That username is already taken"


def test_register_weak_password(client) -> None:
    response = client.post("/api/v1/auth/register", json=_register_payload(password="abc"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["success"] is False
    assert "at least 6" in response.json()["message"]


def test_register_invalid_email_is_rejected(client) -> None:
    response = client.post("/api/v1/auth/register", json=_register_payload(email="not-an-email"))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["data"]["errors"]


def test_login_success(client, test_user) -> None:
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "ALICE@example.com", "password": "secret123"},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["user"]["id"] == test_user.id
    assert data["user"]["lastActiveAt"] is not None
    assert decode_access_token(data["token"]).subject == test_user.id


def test_login_wrong_password(client, test_user) -> None:
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "alice@example.com", "password": "wrong-password"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Invalid email or password"


def test_login_unknown_email_looks_like_wrong_password(client, test_user) -> None:
    unknown = client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@example.com", "password": "secret123"},
    )
    wrong = client.post(
        "/api/v1/auth/login",
        json={"email": "alice@example.com", "password": "nope-nope"},
    )
    assert unknown.status_code == wrong.status_code == status.HTTP_401_UNAUTHORIZED
    assert unknown.json() == wrong.json()


def test_login_deactivated_account(client, db_session, test_user) -> None:
    test_user.is_active = False
    db_session.commit()

    response = client.post(
        "/api/v1/auth/login",
        json={"email": "alice@example.com", "password": "secret123"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Invalid email or password"


def test_admin_login_success(client, admin_user, test_settings) -> None:
    response = client.post(
        "/api/v1/auth/admin/login",
        json={"email": "admin@example.com", "password": "admin123"},
    )
    assert response.status_code == status.HTTP_200_OK
    claims = decode_access_token(response.json()["data"]["token"])
    assert claims.role == "admin"
    lifetime = claims.expires_at - claims.issued_at
    assert lifetime.total_seconds() == test_settings.admin_access_token_expire_minutes * 60


def test_admin_login_rejects_non_admin(client, test_user) -> None:
    response = client.post(
        "/api/v1/auth/admin/login",
        json={"email": "alice@example.com", "password": "secret123"},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "Admin access required"


def test_admin_login_rejects_moderator(client, moderator_user) -> None:
    response = client.post(
        "/api/v1/auth/admin/login",
        json={"email": "mod@example.com", "password": "secret123"},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_login_wrong_password(client, admin_user) -> None:
    response = client.post(
        "/api/v1/auth/admin/login",
        json={"email": "admin@example.com", "password": "admin124"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Invalid email or password"


def test_me_returns_profile_with_stats(client, auth_token, test_user, test_post) -> None:
    response = client.get("/api/v1/auth/me", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["data"]
    assert user["id"] == test_user.id
    assert user["username"] == "alice"
    assert user["stats"] == {"totalPosts": 1, "totalVotes": 0, "followers": 0, "following": 0}


def test_me_requires_token(client) -> None:
    response = client.get("/api/v1/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json() == {"success": False, "message": "Not authenticated"}
