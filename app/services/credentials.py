"""Credential Verifier. 이메일·비밀번호 형식 검사와 bcrypt 해시 비교."""

import asyncio
import re
from dataclasses import dataclass

import bcrypt

BCRYPT_ROUNDS = 10
# bcrypt는 앞 72바이트만 사용. 해시·검증 양쪽에서 같은 방식으로 자름.
BCRYPT_MAX_BYTES = 72
PASSWORD_MIN_LENGTH = 8

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"\d")


@dataclass(frozen=True)
class PasswordCheck:
    valid: bool
    message: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> bool:
    """구조적 형식 검사만(local@domain.tld). 실제 수신 가능 여부는 확인하지 않음."""
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_password(password: str) -> PasswordCheck:
    """최소 8자, 영문자 1개 이상, 숫자 1개 이상. 실패 시 위반한 규칙을 message로."""
    if len(password) < PASSWORD_MIN_LENGTH:
        return PasswordCheck(False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not _LETTER.search(password):
        return PasswordCheck(False, "Password must contain at least one letter")
    if not _DIGIT.search(password):
        return PasswordCheck(False, "Password must contain at least one number")
    return PasswordCheck(True)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password_sync(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode(
        "utf-8"
    )


def check_password_sync(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # 손상된 해시 문자열
        return False


async def hash_password(password: str) -> str:
    """bcrypt는 CPU 바운드. 이벤트 루프를 막지 않도록 스레드에서 실행."""
    return await asyncio.to_thread(hash_password_sync, password)


async def check_password(password: str, password_hash: str) -> bool:
    """상수 시간 비교(bcrypt.checkpw)."""
    return await asyncio.to_thread(check_password_sync, password, password_hash)
