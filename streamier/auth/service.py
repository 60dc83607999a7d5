"""Account flows: sign-up, sign-in and session teardown."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar, cast

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator
from sqlmodel import Session, select

from .errors import (
    BAD_USER_INPUT,
    EMAIL_ALREADY_EXISTS,
    INVALID_PASSWORD,
    USER_NOT_FOUND,
    WEAK_PASSWORD,
    AuthError,
)
from .identifiers import generate_user_id, insert_with_unique_id
from .models import User, UserPreferences, UserPrivacySettings, UserSession
from .passwords import evaluate_password, hash_password, needs_rehash, verify_password
from .sessions import (
    create_user_session,
    delete_user_session,
    ensure_session_capacity,
    find_active_session,
    validate_expiration,
)
from .two_factor import verify_second_factor

logger = logging.getLogger(__name__)


def normalize_email(value: str) -> str:
    return value.strip().lower()


class _CredentialsInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def _clean_email(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_email(value)
        return value


class SignUpInput(_CredentialsInput):
    """Payload for creating an account."""


class SignInInput(_CredentialsInput):
    """Payload for opening a session."""

    expiration_date: datetime
    two_factor_code: Optional[str] = Field(default=None, max_length=64)

    @field_validator("two_factor_code")
    @classmethod
    def _clean_code(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


_Input = TypeVar("_Input", bound=BaseModel)


def validate_input(model: Type[_Input], **values: Any) -> _Input:
    """Build ``model`` from ``values`` or raise ``BAD_USER_INPUT``."""

    try:
        return model(**values)
    except ValidationError as exc:
        fields: List[Dict[str, str]] = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        raise AuthError(BAD_USER_INPUT, "Invalid input", {"fields": fields}) from exc


def _email_taken(session: Session, email: str) -> bool:
    return session.exec(select(User.id).where(User.email == email)).first() is not None


def _email_exists_error(email: str) -> AuthError:
    return AuthError(EMAIL_ALREADY_EXISTS, "Email already exists", {"email": email})


def sign_up(session: Session, email: str, password: str) -> User:
    """Create an account for ``email`` and return it."""

    data = validate_input(SignUpInput, email=email, password=password)

    if _email_taken(session, data.email):
        raise _email_exists_error(data.email)

    strength = evaluate_password(data.password, user_inputs=[data.email])
    if not strength.acceptable:
        raise AuthError(
            WEAK_PASSWORD, "Password is too weak", {"feedback": strength.feedback}
        )

    hashed = hash_password(data.password)

    def build(user_id: str):
        return [
            User(id=user_id, email=data.email, hashed_password=hashed),
            UserPrivacySettings(id=user_id),
            UserPreferences(id=user_id),
        ]

    def on_conflict() -> None:
        if _email_taken(session, data.email):
            raise _email_exists_error(data.email)

    user = cast(
        User,
        insert_with_unique_id(
            session, generate_user_id, build, label="user", on_conflict=on_conflict
        ),
    )
    logger.info("User %s signed up", user.id)
    return user


def sign_in(
    session: Session,
    email: str,
    password: str,
    expiration_date: datetime,
    two_factor_code: Optional[str] = None,
) -> UserSession:
    """Check credentials and open a session that lasts until ``expiration_date``."""

    data = validate_input(
        SignInInput,
        email=email,
        password=password,
        expiration_date=expiration_date,
        two_factor_code=two_factor_code,
    )

    expires_at = validate_expiration(data.expiration_date)

    user = session.exec(select(User).where(User.email == data.email)).first()
    if user is None:
        logger.info("Sign-in refused: unknown email")
        raise AuthError(USER_NOT_FOUND, "User not found")

    if not verify_password(data.password, user.hashed_password):
        logger.info("Sign-in refused for user %s: wrong password", user.id)
        raise AuthError(INVALID_PASSWORD, "Invalid password")

    try:
        verify_second_factor(session, user, data.two_factor_code)
    except AuthError as exc:
        logger.info("Sign-in refused for user %s: %s", user.id, exc.code)
        raise

    ensure_session_capacity(session, user.id)

    user_session = create_user_session(session, user, expires_at)
    logger.info("User %s signed in", user.id)

    # Only a completed sign-in may rewrite the stored hash.
    if needs_rehash(user.hashed_password):
        user.hashed_password = hash_password(data.password)
        session.add(user)
        session.commit()
        logger.info("Password hash upgraded for user %s", user.id)
    return user_session


def delete_session(session: Session, session_id: Optional[str]) -> bool:
    """End the session called ``session_id``; ``False`` if there is none."""

    return delete_user_session(session, session_id)


def get_user_for_session(session: Session, session_id: Optional[str]) -> Optional[User]:
    """Return the owner of an unexpired session, if any."""

    user_session = find_active_session(session, session_id)
    if user_session is None:
        return None
    return session.get(User, user_session.user_id)


__all__ = [
    "SignInInput",
    "SignUpInput",
    "delete_session",
    "get_user_for_session",
    "normalize_email",
    "sign_in",
    "sign_up",
    "validate_input",
]
