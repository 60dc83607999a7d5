"""Second-factor checks: time-based codes with recovery-code fallback."""
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import pyotp
from sqlalchemy import delete, func
from sqlmodel import Session, select

from ..config import settings
from .errors import INVALID_TWO_FACTOR_CODE, TWO_FACTOR_REQUIRED, AuthError
from .models import RecoveryCode, TwoFactorAuthentication, User

logger = logging.getLogger(__name__)

DEFAULT_RECOVERY_CODE_COUNT = 10
RECOVERY_CODE_BYTES = 5


def generate_secret() -> str:
    """Return a fresh base32 shared secret."""

    return pyotp.random_base32()


def generate_recovery_codes(count: int = DEFAULT_RECOVERY_CODE_COUNT) -> List[str]:
    """Return ``count`` distinct single-use recovery codes."""

    if count <= 0:
        raise ValueError("count must be positive")
    codes: List[str] = []
    while len(codes) < count:
        candidate = secrets.token_hex(RECOVERY_CODE_BYTES)
        if candidate not in codes:
            codes.append(candidate)
    return codes


def hash_recovery_code(code: str) -> str:
    """Return the digest under which ``code`` is stored."""

    if not isinstance(code, str) or not code.strip():
        raise ValueError("code must be a non-empty string")
    return hashlib.sha256(code.strip().encode("utf-8")).hexdigest()


def enable_two_factor(
    session: Session,
    user: User,
    *,
    secret: Optional[str] = None,
    recovery_codes: Optional[Iterable[str]] = None,
) -> Tuple[str, List[str]]:
    """Attach a TOTP secret and recovery codes to ``user``.

    Any previous secret and codes are replaced. Returns the secret and the
    plaintext codes; only their digests are stored.
    """

    secret = secret or generate_secret()
    codes = list(recovery_codes) if recovery_codes is not None else generate_recovery_codes()

    existing = session.get(TwoFactorAuthentication, user.id)
    if existing is None:
        session.add(TwoFactorAuthentication(id=user.id, secret=secret))
    else:
        existing.secret = secret
        session.add(existing)
        session.exec(delete(RecoveryCode).where(RecoveryCode.two_factor_id == user.id))
    session.flush()

    for code_hash in {hash_recovery_code(code) for code in codes}:
        session.add(RecoveryCode(two_factor_id=user.id, code_hash=code_hash))
    session.commit()
    logger.info("Two-factor authentication enabled for user %s", user.id)
    return secret, codes


def get_two_factor(session: Session, user: User) -> Optional[TwoFactorAuthentication]:
    return session.get(TwoFactorAuthentication, user.id)


def verify_totp(secret: str, code: str, *, at: Optional[datetime] = None) -> bool:
    """Return ``True`` if ``code`` is valid for ``secret`` near ``at``."""

    if not secret or not code:
        return False
    try:
        return pyotp.TOTP(secret).verify(
            code.strip(), for_time=at, valid_window=settings.TOTP_VALID_WINDOW
        )
    except (TypeError, ValueError):
        # Malformed secret or a code that is not numeric.
        return False


def consume_recovery_code(session: Session, two_factor_id: str, code: str) -> bool:
    """Remove ``code`` if it is still unused and report whether it was.

    The check and the removal are one conditional ``DELETE`` so two requests
    cannot both spend the same code.
    """

    try:
        code_hash = hash_recovery_code(code)
    except ValueError:
        return False

    result = session.exec(
        delete(RecoveryCode)
        .where(RecoveryCode.two_factor_id == two_factor_id)
        .where(RecoveryCode.code_hash == code_hash)
    )
    if not result.rowcount:
        return False
    session.commit()
    return True


def remaining_recovery_codes(session: Session, two_factor_id: str) -> int:
    return session.exec(
        select(func.count())
        .select_from(RecoveryCode)
        .where(RecoveryCode.two_factor_id == two_factor_id)
    ).one()


def verify_second_factor(
    session: Session,
    user: User,
    code: Optional[str],
    *,
    at: Optional[datetime] = None,
) -> None:
    """Raise unless ``user`` has no second factor or ``code`` satisfies it."""

    two_factor = get_two_factor(session, user)
    if two_factor is None:
        return

    if not code:
        raise AuthError(TWO_FACTOR_REQUIRED, "Two-factor authentication code required")

    if verify_totp(two_factor.secret, code, at=at):
        return

    if consume_recovery_code(session, two_factor.id, code):
        logger.info(
            "Recovery code used for user %s (%d left)",
            user.id,
            remaining_recovery_codes(session, two_factor.id),
        )
        return

    raise AuthError(INVALID_TWO_FACTOR_CODE, "Invalid two-factor authentication code")


__all__ = [
    "consume_recovery_code",
    "enable_two_factor",
    "generate_recovery_codes",
    "generate_secret",
    "get_two_factor",
    "hash_recovery_code",
    "remaining_recovery_codes",
    "verify_second_factor",
    "verify_totp",
]
