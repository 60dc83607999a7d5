"""Database helpers for working with the account store."""
from __future__ import annotations

from typing import Any, Iterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlmodel import Session, SQLModel, create_engine

from .config import settings


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory for SQLite databases when needed."""

    try:
        url = make_url(database_url)
    except Exception:
        return

    if not url.drivername.startswith("sqlite"):
        return

    database = url.database
    if not database or database in {":memory:", ""}:
        return

    path = settings.resolve_data_path(database)
    path.parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(database_url: str):
    _ensure_sqlite_directory(database_url)
    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    built = create_engine(database_url, connect_args=connect_args, future=True)
    if database_url.startswith("sqlite"):
        event.listen(built, "connect", _enable_sqlite_foreign_keys)
    return built


def _build_session_factory(bind) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        class_=Session,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


engine = _build_engine(settings.AUTH_DB_URL)
SessionLocal = _build_session_factory(engine)


def reset_session_factory(database_url: str | None = None) -> None:
    """Rebuild the engine/sessionmaker.

    Primarily intended for tests to isolate storage in temporary locations.
    """

    global engine, SessionLocal

    if database_url is not None:
        settings.AUTH_DB_URL = database_url
    engine.dispose()
    engine = _build_engine(settings.AUTH_DB_URL)
    SessionLocal = _build_session_factory(engine)


def init_storage() -> None:
    """Create every table registered on the SQLModel metadata."""

    # Table classes register themselves on import.
    from .auth import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    """Yield a database session suitable for FastAPI dependencies."""

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


__all__ = ["engine", "SessionLocal", "get_session", "init_storage", "reset_session_factory"]
