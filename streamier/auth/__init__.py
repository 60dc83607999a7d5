"""Account, credential and session handling."""

from .errors import AuthError, IdentifierExhaustedError
from .passwords import evaluate_password, hash_password, needs_rehash, verify_password
from .service import delete_session, get_user_for_session, sign_in, sign_up
from .sessions import purge_expired_sessions
from .two_factor import enable_two_factor

__all__ = [
    "AuthError",
    "IdentifierExhaustedError",
    "delete_session",
    "enable_two_factor",
    "evaluate_password",
    "get_user_for_session",
    "hash_password",
    "needs_rehash",
    "purge_expired_sessions",
    "sign_in",
    "sign_up",
    "verify_password",
]
