# tests/v1/test_admin.py
"""Tests for admin user management endpoints."""

from fastapi import status

from civic_voice.core.permissions import Role
from civic_voice.core.security import create_access_token
from tests.conftest import bearer


class TestListUsers:
    def test_list_users(self, client, admin_token, test_user, other_user):
        response = client.get("/api/v1/admin/users", headers=admin_token)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["pagination"]["total"] == 3
        assert {user["username"] for user in data["users"]} == {"admin", "alice", "bob"}
        assert "adminNotes" in data["users"][0]

    def test_filter_by_role(self, client, admin_token, test_user, moderator_user):
        response = client.get(
            "/api/v1/admin/users", params={"role": "moderator"}, headers=admin_token
        )
        users = response.json()["data"]["users"]
        assert [user["id"] for user in users] == [moderator_user.id]

    def test_search(self, client, admin_token, test_user, other_user):
        response = client.get(
            "/api/v1/admin/users", params={"search": "bob@"}, headers=admin_token
        )
        users = response.json()["data"]["users"]
        assert [user["id"] for user in users] == [other_user.id]

    def test_moderator_cannot_manage_users(self, client, moderator_token):
        response = client.get("/api/v1/admin/users", headers=moderator_token)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_user_detail(self, client, admin_token, test_user, test_post):
        response = client.get(f"/api/v1/admin/users/{test_user.id}", headers=admin_token)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["user"]["email"] == "alice@example.com"
        assert [post["id"] for post in data["recentPosts"]] == [test_post.id]

    def test_user_detail_not_found(self, client, admin_token):
        response = client.get("/api/v1/admin/users/nobody", headers=admin_token)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestRoleChange:
    def test_promote_to_moderator(self, client, db_session, admin_token, test_user):
        response = client.put(
            f"/api/v1/admin/users/{test_user.id}/role",
            json={"role": "moderator"},
            headers=admin_token,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["role"] == "moderator"
        db_session.refresh(test_user)
        assert test_user.role == "moderator"

    def test_promotion_needs_fresh_login(self, client, db_session, admin_token, test_user):
        old_headers = bearer(test_user)
        client.put(
            f"/api/v1/admin/users/{test_user.id}/role",
            json={"role": "moderator"},
            headers=admin_token,
        )

        stale = client.get("/api/v1/admin/reports", headers=old_headers)
        assert stale.status_code == status.HTTP_403_FORBIDDEN

        fresh = client.get("/api/v1/admin/reports", headers=bearer(test_user, "moderator"))
        assert fresh.status_code == status.HTTP_200_OK

    def test_demotion_applies_immediately(self, client, admin_user, make_user):
        second_admin = make_user(role=Role.ADMIN)
        second_headers = bearer(second_admin)
        assert client.get("/api/v1/admin/dashboard", headers=second_headers).status_code == 200

        response = client.put(
            f"/api/v1/admin/users/{second_admin.id}/role",
            json={"role": "user"},
            headers=bearer(admin_user),
        )
        assert response.status_code == status.HTTP_200_OK

        denied = client.get("/api/v1/admin/dashboard", headers=second_headers)
        assert denied.status_code == status.HTTP_403_FORBIDDEN

    def test_cannot_change_own_role(self, client, admin_user, admin_token):
        response = client.put(
            f"/api/v1/admin/users/{admin_user.id}/role",
            json={"role": "user"},
            headers=admin_token,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Cannot change your own role"

    def test_invalid_role(self, client, admin_token, test_user):
        response = client.put(
            f"/api/v1/admin/users/{test_user.id}/role",
            json={"role": "overlord"},
            headers=admin_token,
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestSuspension:
    def test_suspend_user(self, client, db_session, admin_token, test_user, auth_token):
        response = client.put(
            f"/api/v1/admin/users/{test_user.id}/suspend",
            json={"reason": "Spamming", "duration": 3},
            headers=admin_token,
        )
        assert response.status_code == status.HTTP_200_OK
        user = response.json()["data"]
        assert user["isActive"] is False
        assert user["suspensionReason"] == "Spamming"
        assert user["suspendedUntil"] is not None
        assert "Spamming" in user["adminNotes"]

        # The token issued before suspension stops working at once.
        me = client.get("/api/v1/auth/me", headers=auth_token)
        assert me.status_code == status.HTTP_403_FORBIDDEN

        login = client.post(
            "/api/v1/auth/login", json={"email": "alice@example.com", "password": "secret123"}
        )
        assert login.status_code == status.HTTP_401_UNAUTHORIZED

    def test_suspend_requires_reason(self, client, admin_token, test_user):
        response = client.put(
            f"/api/v1/admin/users/{test_user.id}/suspend",
            json={"reason": ""},
            headers=admin_token,
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_cannot_suspend_self(self, client, admin_user, admin_token):
        response = client.put(
            f"/api/v1/admin/users/{admin_user.id}/suspend",
            json={"reason": "testing"},
            headers=admin_token,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Cannot suspend yourself"

    def test_activate_user(self, client, admin_token, test_user, auth_token):
        client.put(
            f"/api/v1/admin/users/{test_user.id}/suspend",
            json={"reason": "Spamming"},
            headers=admin_token,
        )
        response = client.put(f"/api/v1/admin/users/{test_user.id}/activate", headers=admin_token)
        assert response.status_code == status.HTTP_200_OK
        user = response.json()["data"]
        assert user["isActive"] is True
        assert user["suspendedUntil"] is None
        assert user["suspensionReason"] == ""

        # Tokens are stateless, so the pre-suspension token works again.
        assert client.get("/api/v1/auth/me", headers=auth_token).status_code == status.HTTP_200_OK

    def test_admin_session_is_shorter(self, client, admin_user, test_settings):
        token = create_access_token(admin_user.id, "admin")
        response = client.get(
            "/api/v1/admin/dashboard", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == status.HTTP_200_OK
        assert (
            test_settings.admin_access_token_expire_minutes
            < test_settings.access_token_expire_minutes
        )
