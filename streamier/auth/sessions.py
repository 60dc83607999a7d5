"""Session store: expiration bounds, per-user caps, creation and teardown."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, cast

from sqlalchemy import delete, func
from sqlmodel import Session, select

from ..config import settings
from .errors import (
    INVALID_EXPIRATION_DATE,
    MAX_SESSIONS_PER_USER,
    SESSION_REQUIRED,
    AuthError,
)
from .identifiers import generate_session_id, insert_with_unique_id
from .models import User, UserSession, as_utc

logger = logging.getLogger(__name__)

_TimeProvider = Callable[[], datetime]


def _default_time_provider() -> datetime:
    return datetime.now(timezone.utc)


_now: _TimeProvider = _default_time_provider


def set_time_provider(provider: Optional[_TimeProvider] = None) -> None:
    """Replace the clock used for session bookkeeping, primarily for tests."""

    global _now
    _now = provider or _default_time_provider


def utcnow() -> datetime:
    return _now()


def expiration_bounds(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Return the earliest and latest expiration accepted at ``now``."""

    now = now or utcnow()
    earliest = now + timedelta(seconds=settings.MIN_SESSION_LIFETIME_SECONDS)
    latest = now + timedelta(days=settings.MAX_SESSION_LIFETIME_DAYS)
    return earliest, latest


def validate_expiration(expires_at: datetime, *, now: Optional[datetime] = None) -> datetime:
    """Return ``expires_at`` in UTC or raise when it is out of bounds.

    Naive datetimes are taken to be UTC. Both bounds are inclusive.
    """

    candidate = as_utc(expires_at)
    earliest, latest = expiration_bounds(now)
    if candidate < earliest or candidate > latest:
        raise AuthError(INVALID_EXPIRATION_DATE, "Invalid expiration date")
    return candidate


def count_active_sessions(
    session: Session, user_id: str, *, now: Optional[datetime] = None
) -> int:
    now = now or utcnow()
    return session.exec(
        select(func.count())
        .select_from(UserSession)
        .where(UserSession.user_id == user_id)
        .where(UserSession.expires_at > now)
    ).one()


def ensure_session_capacity(
    session: Session, user_id: str, *, now: Optional[datetime] = None
) -> None:
    """Raise when ``user_id`` already holds the maximum number of sessions."""

    limit = settings.MAX_SESSIONS_PER_USER
    if count_active_sessions(session, user_id, now=now) >= limit:
        raise AuthError(
            MAX_SESSIONS_PER_USER,
            f"Maximum number of sessions per user ({limit}) reached",
        )


def create_user_session(session: Session, user: User, expires_at: datetime) -> UserSession:
    """Persist a new session for ``user`` under a freshly generated id."""

    expires_at = as_utc(expires_at)
    user_id = user.id
    created = insert_with_unique_id(
        session,
        generate_session_id,
        lambda session_id: [
            UserSession(id=session_id, user_id=user_id, expires_at=expires_at)
        ],
        label="session",
    )
    return cast(UserSession, created)


def find_active_session(
    session: Session, session_id: Optional[str], *, now: Optional[datetime] = None
) -> Optional[UserSession]:
    """Return the unexpired session called ``session_id``, if any."""

    if not session_id:
        return None
    user_session = session.get(UserSession, session_id)
    if user_session is None or user_session.is_expired(now or utcnow()):
        return None
    return user_session


def delete_user_session(session: Session, session_id: Optional[str]) -> bool:
    """Remove the session called ``session_id``.

    Returns ``False`` when no such session exists; a missing id is an error.
    """

    if not session_id:
        raise AuthError(SESSION_REQUIRED, "Session ID is required")

    owner_id = session.exec(
        select(User.id)
        .join(UserSession, UserSession.user_id == User.id)
        .where(UserSession.id == session_id)
    ).first()
    if owner_id is None:
        return False

    result = session.exec(
        delete(UserSession)
        .where(UserSession.id == session_id)
        .where(UserSession.user_id == owner_id)
    )
    if not result.rowcount:
        return False
    session.commit()
    logger.info("Session deleted for user %s", owner_id)
    return True


def purge_expired_sessions(session: Session, *, now: Optional[datetime] = None) -> int:
    """Delete every expired session and return how many were removed."""

    now = now or utcnow()
    result = session.exec(
        delete(UserSession)
        .where(UserSession.expires_at <= now)
        .execution_options(synchronize_session="fetch")
    )
    session.commit()
    removed = result.rowcount or 0
    if removed:
        logger.info("Purged %d expired sessions", removed)
    return removed


__all__ = [
    "count_active_sessions",
    "create_user_session",
    "delete_user_session",
    "ensure_session_capacity",
    "expiration_bounds",
    "find_active_session",
    "purge_expired_sessions",
    "set_time_provider",
    "utcnow",
    "validate_expiration",
]
