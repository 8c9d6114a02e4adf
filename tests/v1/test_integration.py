# tests/v1/test_integration.py
"""End-to-end flows across several endpoints."""

from fastapi import status


def _register(client, email: str, username: str, password: str, full_name: str) -> dict:
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": email,
            "username": username,
            "password": password,
            "fullName": full_name,
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


def _headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_register_post_like_and_report(client, admin_user) -> None:
    """A like from bob shows up in the dashboard and on alice's profile."""
    alice = _register(client, "alice@example.com", "alice", "alice123", "Alice Anders")
    _register(client, "bob@example.com", "bob", "bob12345", "Bob Brown")

    created = client.post(
        "/api/v1/posts", json={"content": "Hello"}, headers=_headers(alice["token"])
    )
    assert created.status_code == status.HTTP_201_CREATED
    post_id = created.json()["data"]["id"]

    bob_login = client.post(
        "/api/v1/auth/login", json={"email": "bob@example.com", "password": "bob12345"}
    )
    assert bob_login.status_code == status.HTTP_200_OK
    bob_token = bob_login.json()["data"]["token"]

    liked = client.post(f"/api/v1/posts/{post_id}/like", headers=_headers(bob_token))
    assert liked.status_code == status.HTTP_200_OK
    assert liked.json()["data"]["likeCount"] == 1

    admin_login = client.post(
        "/api/v1/auth/admin/login", json={"email": "admin@example.com", "password": "admin123"}
    )
    assert admin_login.status_code == status.HTTP_200_OK
    admin_token = admin_login.json()["data"]["token"]

    dashboard = client.get("/api/v1/admin/dashboard", headers=_headers(admin_token))
    assert dashboard.status_code == status.HTTP_200_OK
    assert dashboard.json()["data"]["stats"]["totalPosts"] == 1

    profile = client.get(f"/api/v1/users/{alice['user']['id']}")
    assert profile.json()["data"]["user"]["stats"]["totalVotes"] == 1

    me = client.get("/api/v1/auth/me", headers=_headers(alice["token"]))
    assert me.json()["data"]["stats"]["totalVotes"] == 1


def test_failed_admin_logins_do_not_lock_account(client, admin_user) -> None:
    for _ in range(3):
        response = client.post(
            "/api/v1/auth/admin/login",
            json={"email": "admin@example.com", "password": "not-the-password"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"success": False, "message": "Invalid email or password"}

    response = client.post(
        "/api/v1/auth/admin/login", json={"email": "admin@example.com", "password": "admin123"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Admin login successful"


def test_user_analytics_twice_without_writes(client, admin_token, test_post) -> None:
    first = client.get("/api/v1/admin/analytics", headers=admin_token)
    second = client.get("/api/v1/admin/analytics", headers=admin_token)
    assert first.json()["data"]["users"] == second.json()["data"]["users"]


def test_suspension_cuts_off_existing_session(client, admin_token, test_user, auth_token) -> None:
    assert client.post(
        "/api/v1/posts", json={"content": "before"}, headers=auth_token
    ).status_code == status.HTTP_201_CREATED

    client.put(
        f"/api/v1/admin/users/{test_user.id}/suspend",
        json={"reason": "Spam"},
        headers=admin_token,
    )

    response = client.post("/api/v1/posts", json={"content": "after"}, headers=auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "Forbidden"
