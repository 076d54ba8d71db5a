"""Credential Verifier 단위 테스트."""

import pytest

from app.services.credentials import (
    check_password,
    check_password_sync,
    hash_password,
    normalize_email,
    validate_email,
    validate_password,
)


@pytest.mark.parametrize(
    ("password", "expected_message"),
    [
        ("short1", "Password must be at least 8 characters long"),
        ("alllettersnonumber", "Password must contain at least one number"),
        ("12345678", "Password must contain at least one letter"),
    ],
)
def test_validate_password_rejects_with_specific_rule(password: str, expected_message: str) -> None:
    result = validate_password(password)
    assert result.valid is False
    assert result.message == expected_message


def test_validate_password_accepts_letter_and_digit() -> None:
    result = validate_password("abcdefg1")
    assert result.valid is True
    assert result.message is None


@pytest.mark.parametrize(
    ("email", "valid"),
    [
        ("user@example.com", True),
        ("  User@Example.COM ", True),
        ("no-at-sign.com", False),
        ("user@nodot", False),
        ("two words@example.com", False),
    ],
)
def test_validate_email(email: str, valid: bool) -> None:
    assert validate_email(email) is valid


def test_normalize_email_lowercases_and_strips() -> None:
    assert normalize_email("  Foo@Bar.COM ") == "foo@bar.com"


@pytest.mark.asyncio
async def test_hash_and_check_password() -> None:
    hashed = await hash_password("Password123")
    assert hashed != "Password123"
    assert hashed.startswith("$2")
    assert await check_password("Password123", hashed) is True
    assert await check_password("Password124", hashed) is False


def test_check_password_with_corrupt_hash_returns_false() -> None:
    assert check_password_sync("Password123", "not-a-bcrypt-hash") is False
