"""Coded errors raised by the account flows."""
from __future__ import annotations

from typing import Any, Dict, Optional

EMAIL_ALREADY_EXISTS = "EMAIL_ALREADY_EXISTS"
WEAK_PASSWORD = "WEAK_PASSWORD"
INVALID_EXPIRATION_DATE = "INVALID_EXPIRATION_DATE"
USER_NOT_FOUND = "USER_NOT_FOUND"
INVALID_PASSWORD = "INVALID_PASSWORD"
TWO_FACTOR_REQUIRED = "2FA_REQUIRED"
INVALID_TWO_FACTOR_CODE = "INVALID_2FA_CODE"
MAX_SESSIONS_PER_USER = "MAX_SESSIONS_PER_USER"
SESSION_REQUIRED = "SESSION_REQUIRED"
BAD_USER_INPUT = "BAD_USER_INPUT"


class AuthError(Exception):
    """A domain failure carrying a machine-readable ``code``."""

    def __init__(
        self,
        code: str,
        message: str,
        extensions: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.extensions: Dict[str, Any] = {"code": code, **(extensions or {})}

    def __repr__(self) -> str:
        return f"AuthError({self.code!r}, {self.message!r})"


class IdentifierExhaustedError(RuntimeError):
    """Raised when no free identifier was found within the retry budget."""


__all__ = [
    "AuthError",
    "BAD_USER_INPUT",
    "EMAIL_ALREADY_EXISTS",
    "IdentifierExhaustedError",
    "INVALID_EXPIRATION_DATE",
    "INVALID_PASSWORD",
    "INVALID_TWO_FACTOR_CODE",
    "MAX_SESSIONS_PER_USER",
    "SESSION_REQUIRED",
    "TWO_FACTOR_REQUIRED",
    "USER_NOT_FOUND",
    "WEAK_PASSWORD",
]
