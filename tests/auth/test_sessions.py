from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from streamier.auth.errors import AuthError
from streamier.auth.models import UserSession
from streamier.auth.sessions import (
    count_active_sessions,
    create_user_session,
    delete_user_session,
    ensure_session_capacity,
    find_active_session,
    purge_expired_sessions,
    validate_expiration,
)


def test_expiration_bounds_are_inclusive(frozen_clock) -> None:
    assert validate_expiration(frozen_clock + timedelta(hours=1)) == frozen_clock + timedelta(hours=1)
    assert validate_expiration(frozen_clock + timedelta(days=365))

    for bad in (
        frozen_clock + timedelta(minutes=59, seconds=59),
        frozen_clock + timedelta(days=365, seconds=1),
        frozen_clock - timedelta(days=1),
    ):
        with pytest.raises(AuthError) as excinfo:
            validate_expiration(bad)
        assert excinfo.value.code == "INVALID_EXPIRATION_DATE"


def test_naive_expiration_is_read_as_utc(frozen_clock) -> None:
    naive = datetime(2026, 1, 15, 14, 0)
    assert validate_expiration(naive).tzinfo is not None


def test_session_cap_counts_only_unexpired_sessions(db, make_user, frozen_clock) -> None:
    user = make_user()
    for _ in range(4):
        create_user_session(db, user, frozen_clock + timedelta(days=1))
    db.add(UserSession(id="stale", user_id=user.id, expires_at=frozen_clock - timedelta(hours=1)))
    db.commit()

    assert count_active_sessions(db, user.id) == 4
    ensure_session_capacity(db, user.id)

    create_user_session(db, user, frozen_clock + timedelta(days=1))
    with pytest.raises(AuthError) as excinfo:
        ensure_session_capacity(db, user.id)
    assert excinfo.value.code == "MAX_SESSIONS_PER_USER"
    assert "(5)" in excinfo.value.message


def test_find_active_session_ignores_expired(db, make_user, frozen_clock) -> None:
    user = make_user()
    live = create_user_session(db, user, frozen_clock + timedelta(hours=2))

    assert find_active_session(db, live.id).user_id == user.id
    assert find_active_session(db, live.id, now=frozen_clock + timedelta(hours=3)) is None
    assert find_active_session(db, None) is None
    assert find_active_session(db, "missing") is None


def test_delete_session_requires_id(db) -> None:
    for missing in (None, ""):
        with pytest.raises(AuthError) as excinfo:
            delete_user_session(db, missing)
        assert excinfo.value.code == "SESSION_REQUIRED"


def test_delete_session_reports_outcome(db, make_user, frozen_clock) -> None:
    user = make_user()
    created = create_user_session(db, user, frozen_clock + timedelta(hours=2))

    assert delete_user_session(db, "no-such-session") is False
    assert delete_user_session(db, created.id) is True
    assert delete_user_session(db, created.id) is False
    assert count_active_sessions(db, user.id) == 0


def test_purge_expired_sessions(db, make_user, frozen_clock) -> None:
    user = make_user()
    keep = create_user_session(db, user, frozen_clock + timedelta(hours=2))
    db.add(UserSession(id="old-1", user_id=user.id, expires_at=frozen_clock - timedelta(seconds=1)))
    db.add(UserSession(id="old-2", user_id=user.id, expires_at=frozen_clock))
    db.commit()
    db.expunge_all()

    assert purge_expired_sessions(db) == 2
    assert db.get(UserSession, keep.id) is not None
    assert db.get(UserSession, "old-1") is None
