# tests/v1/test_dependencies.py
"""Tests for API dependencies module."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import status
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from civic_voice.api.v1.dependencies import (
    authorize,
    get_current_user,
    get_optional_user,
    get_token_claims,
)
from civic_voice.core.errors import Forbidden, InvalidToken, NotAuthenticated, TokenExpired
from civic_voice.core.permissions import Capability, Role
from civic_voice.core.security import create_access_token, decode_access_token
from civic_voice.core.settings import settings
from tests.conftest import bearer


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetTokenClaims:
    """Test bearer token extraction."""

    def test_missing_credentials(self):
        with pytest.raises(NotAuthenticated):
            get_token_claims(None)

    def test_valid_token(self):
        token = create_access_token("user-1", "user")
        claims = get_token_claims(_credentials(token))
        assert claims.subject == "user-1"
        assert claims.role == "user"

    def test_wrong_algorithm(self):
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": "user-1",
                "role": "user",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(hours=1)).timestamp()),
            },
            settings.secret_key,
            algorithm="HS512",
        )
        with pytest.raises(InvalidToken):
            get_token_claims(_credentials(token))

    def test_expired_token(self):
        token = create_access_token(
            "user-1", "user", expires_minutes=1, now=datetime.now(UTC) - timedelta(minutes=5)
        )
        with pytest.raises(TokenExpired):
            get_token_claims(_credentials(token))


class TestGetCurrentUser:
    """Test the get_current_user dependency function."""

    def test_success(self, db_session, test_user):
        claims = decode_access_token(create_access_token(test_user.id, test_user.role))
        assert get_current_user(claims, db_session) is test_user

    def test_nonexistent_user(self, db_session):
        claims = decode_access_token(create_access_token("no-such-user", "user"))
        with pytest.raises(InvalidToken):
            get_current_user(claims, db_session)

    def test_deactivated_user(self, db_session, test_user):
        claims = decode_access_token(create_access_token(test_user.id, test_user.role))
        test_user.is_active = False
        db_session.commit()
        with pytest.raises(Forbidden):
            get_current_user(claims, db_session)


class TestAuthorize:
    """Both the token role and the live role must hold the capability."""

    def test_member_capability(self, test_user):
        claims = decode_access_token(create_access_token(test_user.id, "user"))
        authorize(claims, test_user, Capability.LIKE)

    def test_missing_capability(self, test_user):
        claims = decode_access_token(create_access_token(test_user.id, "user"))
        with pytest.raises(Forbidden):
            authorize(claims, test_user, Capability.VIEW_ANALYTICS)

    def test_promotion_needs_new_token(self, db_session, test_user):
        claims = decode_access_token(create_access_token(test_user.id, "user"))
        test_user.role = Role.ADMIN.value
        db_session.commit()
        with pytest.raises(Forbidden):
            authorize(claims, test_user, Capability.MANAGE_USERS)

    def test_demotion_applies_immediately(self, db_session, admin_user):
        claims = decode_access_token(create_access_token(admin_user.id, "admin"))
        admin_user.role = Role.USER.value
        db_session.commit()
        with pytest.raises(Forbidden):
            authorize(claims, admin_user, Capability.MANAGE_USERS)

    def test_unknown_role_claim_grants_nothing(self, test_user):
        claims = decode_access_token(create_access_token(test_user.id, "superuser"))
        with pytest.raises(Forbidden):
            authorize(claims, test_user, Capability.VIEW_PROFILE)


class TestGetOptionalUser:
    def test_anonymous(self, db_session):
        assert get_optional_user(None, db_session) is None

    def test_bad_token_is_anonymous(self, db_session):
        assert get_optional_user(_credentials("garbage"), db_session) is None

    def test_known_user(self, db_session, test_user):
        token = create_access_token(test_user.id, test_user.role)
        assert get_optional_user(_credentials(token), db_session) is test_user


class TestGuardOverHttp:
    """The guard as seen by API clients."""

    def test_no_token(self, client):
        response = client.get("/api/v1/admin/dashboard")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, client):
        response = client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-real-token"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Could not validate credentials"

    def test_expired_token(self, client, test_user):
        token = create_access_token(
            test_user.id, "user", expires_minutes=1, now=datetime.now(UTC) - timedelta(hours=1)
        )
        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Token has expired"

    def test_user_token_on_admin_route(self, client, auth_token):
        response = client.get("/api/v1/admin/dashboard", headers=auth_token)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"success": False, "message": "Forbidden"}

    def test_forged_admin_claim_for_user_account(self, client, test_user):
        # Correctly signed, but the account behind it is not an admin.
        response = client.get("/api/v1/admin/dashboard", headers=bearer(test_user, "admin"))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Forbidden"

    def test_deactivated_user_is_forbidden(self, client, db_session, test_user, auth_token):
        test_user.is_active = False
        db_session.commit()
        response = client.get("/api/v1/auth/me", headers=auth_token)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Forbidden"

    def test_failure_reasons_are_indistinguishable(
        self, client, db_session, test_user, other_user
    ):
        # Missing capability vs. deactivated account.
        lacking = client.get("/api/v1/admin/users", headers=bearer(test_user))
        other_user.is_active = False
        db_session.commit()
        deactivated = client.get("/api/v1/auth/me", headers=bearer(other_user))
        assert lacking.status_code == deactivated.status_code == status.HTTP_403_FORBIDDEN
        assert lacking.json() == deactivated.json()
