"""Password hashing and strength checks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from passlib.context import CryptContext
from zxcvbn import zxcvbn

from ..config import settings


_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
    bcrypt__min_rounds=settings.BCRYPT_ROUNDS,
)

# zxcvbn gets slow on long inputs and bcrypt ignores bytes past 72 anyway.
_STRENGTH_INPUT_LIMIT = 100


def hash_password(password: str) -> str:
    """Hash ``password`` with bcrypt at the configured cost."""

    if not isinstance(password, str):
        raise TypeError("password must be a string")
    return _context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Return ``True`` if ``password`` matches ``hashed_password``."""

    if not password or not hashed_password:
        return False
    try:
        return _context.verify(password, hashed_password)
    except ValueError:
        return False


def needs_rehash(hashed_password: str) -> bool:
    """Return ``True`` if the hash was made with outdated parameters."""

    if not hashed_password:
        return True
    return _context.needs_update(hashed_password)


@dataclass
class PasswordStrength:
    """Outcome of scoring a candidate password."""

    score: int
    warning: str = ""
    suggestions: List[str] = field(default_factory=list)

    @property
    def feedback(self) -> Dict[str, Any]:
        return {"warning": self.warning, "suggestions": list(self.suggestions)}

    @property
    def acceptable(self) -> bool:
        return self.score >= settings.MIN_PASSWORD_SCORE


def evaluate_password(password: str, user_inputs: Iterable[str] = ()) -> PasswordStrength:
    """Score ``password`` from 0 (guessable) to 4 (very hard to guess).

    ``user_inputs`` are words tied to the account, such as the email address,
    that should count against the password when it reuses them.
    """

    if not password:
        return PasswordStrength(score=0, warning="Password cannot be empty.")

    hints: List[str] = []
    for value in user_inputs:
        if not value:
            continue
        hints.append(value)
        local_part = value.split("@", 1)[0]
        if local_part and local_part != value:
            hints.append(local_part)

    result = zxcvbn(password[:_STRENGTH_INPUT_LIMIT], user_inputs=hints)
    feedback = result.get("feedback") or {}
    return PasswordStrength(
        score=int(result["score"]),
        warning=feedback.get("warning") or "",
        suggestions=list(feedback.get("suggestions") or []),
    )


__all__ = [
    "PasswordStrength",
    "evaluate_password",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
