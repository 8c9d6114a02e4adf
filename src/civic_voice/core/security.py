"""Password hashing and session token primitives.

Passwords go through bcrypt with a per-hash salt. Session tokens are HS256
JWTs carrying ``sub`` (user id), ``role`` (snapshotted at issuance), ``iat`` and
``exp``. Tokens are stateless: there is no server-side denylist, so a token
stays valid until it expires even after the client discards it on logout.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from civic_voice.core.errors import TokenExpired, TokenMalformed, TokenSignatureMismatch
from civic_voice.core.settings import settings

# bcrypt only reads the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password``."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash in constant time."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a session token."""

    subject: str
    role: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(
    subject: str,
    role: str,
    *,
    expires_minutes: int | None = None,
    now: datetime | None = None,
) -> str:
    """Create a signed session token for ``subject`` holding ``role``."""
    issued_at = now or datetime.now(UTC)
    ttl = expires_minutes if expires_minutes is not None else settings.token_ttl_minutes(role)
    to_encode: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=ttl),
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> TokenClaims:
    """Verify a session token and return its claims.

    This is a pure function of the token and the configured secret; it never
    consults the database.

    Raises:
        TokenExpired: The signature is valid but ``exp`` is in the past.
        TokenSignatureMismatch: The token parses but was not signed by us.
        TokenMalformed: The token cannot be parsed or lacks required claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as err:
        raise TokenExpired() from err
    except JWTClaimsError as err:
        raise TokenMalformed() from err
    except JWTError as err:
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            raise TokenMalformed() from err
        raise TokenSignatureMismatch() from err

    subject = payload.get("sub")
    role = payload.get("role")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not isinstance(subject, str) or not subject or not isinstance(role, str):
        raise TokenMalformed()
    if not isinstance(iat, int | float) or not isinstance(exp, int | float):
        raise TokenMalformed()

    return TokenClaims(
        subject=subject,
        role=role,
        issued_at=datetime.fromtimestamp(iat, UTC),
        expires_at=datetime.fromtimestamp(exp, UTC),
    )
