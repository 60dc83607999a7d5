from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

# Cheap hashes and a throwaway data directory; both are read at import time.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="streamier-tests-"))

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from streamier import database
from streamier.auth import sessions
from streamier.auth.service import sign_up
from streamier.config import settings

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
STRONG_PASSWORD = "violet-Anchor-harbor-1987-quiet"


@pytest.fixture()
def db(tmp_path):
    original_url = settings.AUTH_DB_URL
    database.reset_session_factory(f"sqlite:///{tmp_path / 'accounts.sqlite3'}")
    database.init_storage()
    try:
        with database.SessionLocal() as session:
            yield session
    finally:
        database.reset_session_factory(original_url)


@pytest.fixture()
def frozen_clock():
    sessions.set_time_provider(lambda: FIXED_NOW)
    try:
        yield FIXED_NOW
    finally:
        sessions.set_time_provider()


@pytest.fixture()
def make_user(db):
    def _make(email: str = "ada@example.com", password: str = STRONG_PASSWORD):
        return sign_up(db, email, password)

    return _make
