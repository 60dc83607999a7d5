from __future__ import annotations

import pytest

from streamier.auth.passwords import (
    evaluate_password,
    hash_password,
    needs_rehash,
    verify_password,
)


def test_hash_and_verify_password() -> None:
    password = "s3cret-value"
    hashed = hash_password(password)
    assert hashed != password
    assert hashed.startswith("$2")
    assert verify_password(password, hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_rejects_empty_and_malformed_input() -> None:
    hashed = hash_password("something")
    assert not verify_password("", hashed)
    assert not verify_password("something", "")
    assert not verify_password("something", "not-a-bcrypt-hash")


def test_hash_password_requires_string() -> None:
    with pytest.raises(TypeError):
        hash_password(b"bytes")  # type: ignore[arg-type]


def test_needs_rehash_accepts_current_hashes() -> None:
    assert needs_rehash("")
    assert not needs_rehash(hash_password("pw-value"))


def test_common_password_scores_low_with_feedback() -> None:
    result = evaluate_password("password")
    assert result.score < 3
    assert not result.acceptable
    assert set(result.feedback) == {"warning", "suggestions"}
    assert result.feedback["warning"] or result.feedback["suggestions"]


def test_long_random_password_is_acceptable() -> None:
    result = evaluate_password("violet-Anchor-harbor-1987-quiet")
    assert result.score >= 3
    assert result.acceptable


def test_password_built_from_email_scores_lower() -> None:
    candidate = "grace.hopper1906"
    plain = evaluate_password(candidate)
    with_hint = evaluate_password(candidate, user_inputs=["grace.hopper1906@example.com"])
    assert with_hint.score <= plain.score
    assert with_hint.score < 3


def test_empty_password_scores_zero() -> None:
    result = evaluate_password("")
    assert result.score == 0
    assert result.warning
