# tests/v1/test_jwt_validation.py
"""Tests for session token issuance and verification."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from civic_voice.core.errors import TokenExpired, TokenMalformed, TokenSignatureMismatch
from civic_voice.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from civic_voice.core.settings import settings


class TestPasswordHashing:
    def test_hash_is_salted(self):
        first = hash_password("alice123")
        second = hash_password("alice123")
        assert first != second
        assert verify_password("alice123", first)
        assert verify_password("alice123", second)

    def test_wrong_password_fails(self):
        assert not verify_password("alice124", hash_password("alice123"))

    def test_non_bcrypt_hash_fails_closed(self):
        assert not verify_password("alice123", "plaintext-in-the-db")


class TestTokenRoundTrip:
    def test_claims_survive_encoding(self):
        issued = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)
        token = create_access_token("user-1", "moderator", expires_minutes=30, now=issued)
        # Verification happens "now", which is before the 2030 expiry.
        claims = decode_access_token(token)

        assert claims.subject == "user-1"
        assert claims.role == "moderator"
        assert claims.issued_at == issued
        assert claims.expires_at == issued + timedelta(minutes=30)

    @pytest.mark.parametrize(
        ("role", "setting"),
        [
            ("user", "access_token_expire_minutes"),
            ("moderator", "access_token_expire_minutes"),
            ("admin", "admin_access_token_expire_minutes"),
        ],
    )
    def test_default_lifetime_depends_on_role(self, role, setting):
        claims = decode_access_token(create_access_token("user-1", role))
        lifetime = claims.expires_at - claims.issued_at
        assert lifetime == timedelta(minutes=getattr(settings, setting))


class TestTokenFailures:
    def test_expired_token(self):
        issued = datetime.now(UTC) - timedelta(hours=2)
        token = create_access_token("user-1", "user", expires_minutes=60, now=issued)
        with pytest.raises(TokenExpired):
            decode_access_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {
                "sub": "user-1",
                "role": "admin",
                "iat": int(datetime.now(UTC).timestamp()),
                "exp": int((datetime.now(UTC) + timedelta(hours=1)).timestamp()),
            },
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(TokenSignatureMismatch):
            decode_access_token(token)

    def test_tampered_role_claim(self):
        token = create_access_token("user-1", "user")
        header, _payload, signature = token.split(".")
        forged_payload = jwt.encode(
            {"sub": "user-1", "role": "admin", "iat": 0, "exp": 9999999999},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        ).split(".")[1]
        with pytest.raises(TokenSignatureMismatch):
            decode_access_token(f"{header}.{forged_payload}.{signature}")

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", "malformed.jwt.token"])
    def test_garbage(self, token):
        with pytest.raises(TokenMalformed):
            decode_access_token(token)

    def test_missing_role_claim(self):
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "user-1", "iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(TokenMalformed):
            decode_access_token(token)

    def test_missing_subject(self):
        token = jwt.encode(
            {"role": "user", "iat": 1234567890, "exp": 9999999999},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(TokenMalformed):
            decode_access_token(token)
