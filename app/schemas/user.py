"""User 관련 Pydantic 스키마. password_hash는 어떤 응답에도 포함하지 않음."""

import uuid
from datetime import datetime

from app.schemas.base import ApiModel


class UserResponse(ApiModel):
    id: uuid.UUID
    email: str
    full_name: str
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class MeResponse(ApiModel):
    """GET /auth/me. 토큰 클레임 그대로(id, email)."""

    message: str
    user: dict[str, str]
