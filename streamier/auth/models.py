"""SQLModel tables for accounts, sessions and second factors."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlmodel import Field, SQLModel

from ..config import settings


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands timestamps back without tzinfo; every stored value is UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _timestamp_column(*, onupdate: bool = False) -> Column:
    return Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now() if onupdate else None,
    )


def _user_fk_column(*, primary_key: bool = False) -> Column:
    return Column(
        String(settings.USER_ID_LENGTH),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=primary_key,
        nullable=False,
        index=not primary_key,
    )


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(
        sa_column=Column(String(settings.USER_ID_LENGTH), primary_key=True)
    )
    email: str = Field(
        sa_column=Column("email", String(320), unique=True, index=True, nullable=False)
    )
    is_email_verified: bool = Field(
        default=False,
        sa_column=Column("is_email_verified", Boolean, nullable=False, default=False),
    )
    hashed_password: str = Field(
        sa_column=Column("hashed_password", String(255), nullable=False)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=_timestamp_column())
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=_timestamp_column(onupdate=True)
    )


class UserSession(SQLModel, table=True):
    __tablename__ = "user_sessions"

    id: str = Field(
        sa_column=Column(String(settings.SESSION_ID_LENGTH), primary_key=True)
    )
    user_id: str = Field(sa_column=_user_fk_column())
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=_timestamp_column())

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return as_utc(self.expires_at) <= (now or _utcnow())


class TwoFactorAuthentication(SQLModel, table=True):
    """Shared TOTP secret attached to a user; the row id is the user id."""

    __tablename__ = "two_factor_authentications"

    id: str = Field(sa_column=_user_fk_column(primary_key=True))
    secret: str = Field(sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=_timestamp_column())
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=_timestamp_column(onupdate=True)
    )


class RecoveryCode(SQLModel, table=True):
    """Single-use fallback code, stored as a SHA-256 digest."""

    __tablename__ = "recovery_codes"
    __table_args__ = (
        UniqueConstraint(
            "two_factor_id", "code_hash", name="uq_recovery_codes_owner_code"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    two_factor_id: str = Field(
        sa_column=Column(
            String(settings.USER_ID_LENGTH),
            ForeignKey("two_factor_authentications.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    code_hash: str = Field(sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=_timestamp_column())


class UserPrivacySettings(SQLModel, table=True):
    __tablename__ = "user_privacy_settings"

    id: str = Field(sa_column=_user_fk_column(primary_key=True))
    show_email: bool = Field(default=False, nullable=False)
    show_sessions: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, sa_column=_timestamp_column())
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=_timestamp_column(onupdate=True)
    )


class UserPreferences(SQLModel, table=True):
    __tablename__ = "user_preferences"

    id: str = Field(sa_column=_user_fk_column(primary_key=True))
    language: str = Field(default="en", sa_column=Column(String(16), nullable=False, default="en"))
    email_notifications: bool = Field(default=True, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, sa_column=_timestamp_column())
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=_timestamp_column(onupdate=True)
    )


__all__ = [
    "RecoveryCode",
    "TwoFactorAuthentication",
    "User",
    "UserPreferences",
    "UserPrivacySettings",
    "UserSession",
    "as_utc",
]
