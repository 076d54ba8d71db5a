"""아바타 업로드. 검증(이미지 MIME, 크기 제한)은 저장 전 사전 조건."""

import secrets
import time
from pathlib import PurePath

from app.core.config import settings
from app.core.exceptions import InvalidFieldError
from app.core.storage import LocalFileStore, StoredFile

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp", ".avif", ".heic"}


def validate_avatar(data: bytes, content_type: str | None) -> None:
    if not data:
        raise InvalidFieldError("Please upload an image file")
    if not (content_type or "").lower().startswith("image/"):
        raise InvalidFieldError("Only image files are allowed")
    if len(data) > settings.avatar_max_bytes:
        limit_mb = settings.avatar_max_bytes / (1024 * 1024)
        raise InvalidFieldError(f"File too large. Maximum size is {limit_mb:g}MB")


def avatar_filename(original_filename: str | None) -> str:
    """avatar-<epoch ms>-<난수><확장자>. 원본 파일명은 확장자만 사용."""
    ext = PurePath(original_filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        ext = ""
    return f"avatar-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


async def store_avatar(
    data: bytes,
    content_type: str | None,
    original_filename: str | None,
    store: LocalFileStore,
) -> StoredFile:
    validate_avatar(data, content_type)
    return await store.save(f"avatars/{avatar_filename(original_filename)}", data)
