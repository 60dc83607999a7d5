"""Random identifiers for users and sessions."""
from __future__ import annotations

import logging
import secrets
import string
from typing import Callable, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel

from ..config import settings
from .errors import IdentifierExhaustedError

logger = logging.getLogger(__name__)

USER_ID_ALPHABET = string.ascii_lowercase + string.digits
SESSION_ID_SYMBOLS = "!@#$%^&*()-_=+[]{};:,.<>?/|~"
SESSION_ID_ALPHABET = (
    string.ascii_lowercase + string.ascii_uppercase + string.digits + SESSION_ID_SYMBOLS
)


def _random_string(alphabet: str, length: int) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_user_id(length: Optional[int] = None) -> str:
    """Return a short lowercase alphanumeric user identifier."""

    return _random_string(USER_ID_ALPHABET, length or settings.USER_ID_LENGTH)


def generate_session_id(length: Optional[int] = None) -> str:
    """Return a long mixed-case identifier with symbols for a session."""

    return _random_string(SESSION_ID_ALPHABET, length or settings.SESSION_ID_LENGTH)


def insert_with_unique_id(
    session: Session,
    generate: Callable[[], str],
    build: Callable[[str], Sequence[SQLModel]],
    *,
    label: str,
    on_conflict: Optional[Callable[[], None]] = None,
) -> SQLModel:
    """Insert the rows built for a fresh identifier and return the first one.

    Uniqueness is left to the primary key: each attempt is a single insert,
    and a constraint violation rolls back and tries again with a new
    identifier. ``on_conflict`` runs after each rollback and may raise a
    domain error when the violation was not an identifier collision (for
    example an email registered by a concurrent request).
    """

    attempts = max(1, settings.ID_GENERATION_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        rows = list(build(generate()))
        if not rows:
            raise ValueError("build must return at least one row")
        session.add_all(rows)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            if on_conflict is not None:
                on_conflict()
            logger.warning(
                "%s identifier collision (attempt %d of %d)", label, attempt, attempts
            )
            continue
        return rows[0]

    raise IdentifierExhaustedError(
        f"could not allocate a unique {label} identifier after {attempts} attempts"
    )


__all__ = [
    "SESSION_ID_ALPHABET",
    "USER_ID_ALPHABET",
    "generate_session_id",
    "generate_user_id",
    "insert_with_unique_id",
]
