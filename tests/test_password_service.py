"""Password strength scoring and bcrypt helpers."""

import pytest

from workhours.services.password_service import check_password_strength
from workhours.utils.crypto import hash_password, hash_token, verify_password


@pytest.mark.parametrize("password,missing", [
    ("Short1", "at least 8"),
    ("alllowercase1", "uppercase"),
    ("ALLUPPERCASE1", "lowercase"),
    ("NoDigitsHere", "number"),
])
def test_hard_requirements(password, missing):
    result = check_password_strength(password)
    assert not result.is_valid
    assert any(missing in e for e in result.errors)


def test_special_character_is_only_a_suggestion():
    result = check_password_strength("Abcdefg1")
    assert result.is_valid
    assert result.suggestions


def test_common_password_scores_zero():
    result = check_password_strength("Password123")
    assert not result.is_valid
    assert result.score == 0
    assert "Password is too common" in result.errors


def test_strong_password_max_score():
    result = check_password_strength("Correct-Horse-9-Battery")
    assert result.is_valid
    assert result.score == 4
    assert result.to_dict()["isValid"] is True


def test_bcrypt_round_trip(app):
    hashed = hash_password("Str0ngPass!")
    assert hashed != "Str0ngPass!"
    assert verify_password("Str0ngPass!", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_token_hash_is_stable():
    assert hash_token("abc") == hash_token("abc")
    assert len(hash_token("abc")) == 64
