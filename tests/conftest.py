# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from civic_voice.core.permissions import Role
from civic_voice.core.security import create_access_token
from civic_voice.core.settings import Settings
from civic_voice.db.session import Base
from civic_voice.db.session import get_db as app_get_session
from civic_voice.main import app as fastapi_app
from civic_voice.models import Post, User
from civic_voice.services import engagement, user_service

TEST_DB_URL = "sqlite://"
DEFAULT_PASSWORD = "secret123"

_USER_COUNTER = count(1)
_TEST_SETTINGS_INSTANCE = Settings()


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session shared by the test body and the app.

    Services commit and roll back on their own, so isolation comes from
    emptying every table after the test rather than from an outer transaction.
    """
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


def bearer(user: User, role: str | None = None) -> dict[str, str]:
    """Authorization header for ``user``; ``role`` overrides the role claim."""
    token = create_access_token(user.id, role or user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating persisted accounts through the credential store."""

    def _make_user(
        *,
        email: str | None = None,
        username: str | None = None,
        password: str = DEFAULT_PASSWORD,
        full_name: str | None = None,
        role: Role = Role.USER,
        **extra: Any,
    ) -> User:
        n = next(_USER_COUNTER)
        return user_service.create_user(
            db_session,
            email=email or f"user{n}@example.com",
            username=username or f"user{n}",
            password=password,
            full_name=full_name or f"Test User {n}",
            role=role,
            **extra,
        )

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return the primary test user."""
    return make_user(email="alice@example.com", username="alice", full_name="Alice Anders")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second user."""
    return make_user(email="bob@example.com", username="bob", full_name="Bob Brown")


@pytest.fixture()
def moderator_user(make_user: Callable[..., User]) -> User:
    return make_user(
        email="mod@example.com", username="mod", full_name="Mo Derator", role=Role.MODERATOR
    )


@pytest.fixture()
def admin_user(make_user: Callable[..., User]) -> User:
    return make_user(
        email="admin@example.com",
        username="admin",
        full_name="Ada Admin",
        password="admin123",
        role=Role.ADMIN,
    )


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return bearer(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return bearer(other_user)


@pytest.fixture()
def moderator_token(moderator_user: User) -> dict[str, str]:
    return bearer(moderator_user)


@pytest.fixture()
def admin_token(admin_user: User) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture()
def test_post(db_session: Session, test_user: User) -> Post:
    """Create a baseline post authored by the primary test user."""
    return engagement.create_post(db_session, test_user, content="Test post content")
