from __future__ import annotations

import pytest
from sqlmodel import select

from streamier.auth.errors import AuthError, IdentifierExhaustedError
from streamier.auth.identifiers import (
    SESSION_ID_ALPHABET,
    USER_ID_ALPHABET,
    generate_session_id,
    generate_user_id,
    insert_with_unique_id,
)
from streamier.auth.models import User
from streamier.config import settings


def test_generated_ids_use_expected_alphabets() -> None:
    user_ids = {generate_user_id() for _ in range(50)}
    assert len(user_ids) == 50
    for user_id in user_ids:
        assert len(user_id) == 8
        assert all(ch in USER_ID_ALPHABET for ch in user_id)
        assert user_id == user_id.lower()

    session_id = generate_session_id()
    assert len(session_id) == 128
    assert all(ch in SESSION_ID_ALPHABET for ch in session_id)


def test_generate_rejects_non_positive_length() -> None:
    with pytest.raises(ValueError):
        generate_user_id(-1)


def _user_row(user_id: str, email: str) -> User:
    return User(id=user_id, email=email, hashed_password="x")


def test_insert_retries_after_collision(db) -> None:
    db.add(_user_row("taken000", "first@example.com"))
    db.commit()
    db.expunge_all()

    candidates = iter(["taken000", "fresh000"])
    created = insert_with_unique_id(
        db,
        lambda: next(candidates),
        lambda user_id: [_user_row(user_id, "second@example.com")],
        label="user",
    )

    assert created.id == "fresh000"
    ids = set(db.exec(select(User.id)).all())
    assert ids == {"taken000", "fresh000"}


def test_insert_gives_up_after_bounded_attempts(db, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ID_GENERATION_ATTEMPTS", 3)
    db.add(_user_row("taken000", "first@example.com"))
    db.commit()
    db.expunge_all()

    calls = []

    def generate() -> str:
        calls.append(1)
        return "taken000"

    with pytest.raises(IdentifierExhaustedError):
        insert_with_unique_id(
            db,
            generate,
            lambda user_id: [_user_row(user_id, "second@example.com")],
            label="user",
        )
    assert len(calls) == 3


def test_conflict_hook_can_raise_domain_error(db) -> None:
    db.add(_user_row("owner000", "dup@example.com"))
    db.commit()
    db.expunge_all()

    def on_conflict() -> None:
        raise AuthError("EMAIL_ALREADY_EXISTS", "Email already exists")

    with pytest.raises(AuthError) as excinfo:
        insert_with_unique_id(
            db,
            generate_user_id,
            lambda user_id: [_user_row(user_id, "dup@example.com")],
            label="user",
            on_conflict=on_conflict,
        )
    assert excinfo.value.code == "EMAIL_ALREADY_EXISTS"
