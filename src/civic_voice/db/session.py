"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from civic_voice.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import civic_voice.models  # noqa: E402,F401


def engine_options(url: str) -> dict[str, Any]:
    """Return engine keyword arguments that bound every wait on the store."""
    options: dict[str, Any] = {"pool_pre_ping": True, "echo": settings.sql_debug}
    timeout = settings.db_timeout_seconds
    if url.startswith("sqlite"):
        # The sqlite3 busy timeout bounds how long a writer waits for the file lock.
        options["connect_args"] = {"check_same_thread": False, "timeout": timeout}
    else:
        options["pool_timeout"] = timeout
        options["connect_args"] = {"connect_timeout": max(1, int(timeout))}
    return options


engine = create_engine(
    settings.effective_database_url,
    **engine_options(settings.effective_database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)
