"""Auth·JWT 관련 Pydantic 스키마. extra='forbid'로 페이로드 오염 방지."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.base import ApiModel
from app.schemas.user import UserResponse


class GoogleTokenResponse(BaseModel):
    """구글 OAuth 토큰 교환 응답. 구글 필드명 그대로(snake_case). model_validate로 검증 (cast 금지)."""

    id_token: str
    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    scope: str | None = None
    refresh_token: str | None = None


class RegisterPayload(ApiModel):
    """회원가입. 필수값 누락은 422가 아닌 400으로 응답해야 하므로 서비스에서 검사."""

    model_config = ConfigDict(extra="forbid")

    email: str | None = Field(None, max_length=256)
    password: str | None = Field(None, max_length=256)
    full_name: str | None = Field(None, max_length=256)


class LoginPayload(ApiModel):
    model_config = ConfigDict(extra="forbid")

    email: str | None = Field(None, max_length=256)
    password: str | None = Field(None, max_length=256)


class AuthResponse(ApiModel):
    """register/login 응답. Access 토큰은 쿠키와 body 양쪽으로 전달(API 클라이언트용)."""

    message: str
    user: UserResponse
    access_token: str


class RefreshResponse(ApiModel):
    message: str
    access_token: str


class MessageResponse(ApiModel):
    message: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class CurrentUser:
    """Request Gate가 요청 컨텍스트에 붙이는 최소 정보. DB 조회 없이 토큰 클레임만 사용."""

    id: str
    email: str


@dataclass(frozen=True)
class OAuthIdentity:
    """외부 IdP에서 검증이 끝난 신원. provider_user_id는 IdP의 sub."""

    provider_user_id: str
    email: str
    full_name: str
