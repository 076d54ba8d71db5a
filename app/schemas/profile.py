"""Profile·경력·소셜 링크 스키마."""

import uuid
from datetime import date, datetime

from pydantic import Field

from app.schemas.base import ApiModel


class WorkExperienceIn(ApiModel):
    company: str = Field(..., min_length=1, max_length=256)
    position: str = Field(..., min_length=1, max_length=256)
    start_date: date
    end_date: date | None = None  # None = 재직 중
    description: str | None = None


class SocialLinkIn(ApiModel):
    platform: str = Field(..., min_length=1, max_length=64)
    url: str = Field(..., min_length=1, max_length=2048)


class ProfileCreate(ApiModel):
    """fullName·email 필수 여부는 400 응답을 위해 서비스에서 검사."""

    full_name: str | None = Field(None, max_length=256)
    title: str | None = Field(None, max_length=256)
    phone: str | None = Field(None, max_length=64)
    address: str | None = Field(None, max_length=512)
    email: str | None = Field(None, max_length=256)
    avatar_url: str | None = Field(None, max_length=2048)
    work_experiences: list[WorkExperienceIn] | None = None
    social_links: list[SocialLinkIn] | None = None


class ProfileUpdate(ApiModel):
    """
    보낸 필드만 수정(exclude_unset).
    workExperiences/socialLinks: 배열을 보내면(빈 배열 포함) 기존 컬렉션 전체 교체, 생략·null이면 유지.
    """

    full_name: str | None = Field(None, min_length=1, max_length=256)
    title: str | None = Field(None, max_length=256)
    phone: str | None = Field(None, max_length=64)
    address: str | None = Field(None, max_length=512)
    email: str | None = Field(None, min_length=1, max_length=256)
    avatar_url: str | None = Field(None, max_length=2048)
    is_published: bool | None = None
    work_experiences: list[WorkExperienceIn] | None = None
    social_links: list[SocialLinkIn] | None = None


class WorkExperienceResponse(ApiModel):
    id: uuid.UUID
    company: str
    position: str
    start_date: date
    end_date: date | None = None
    description: str | None = None
    display_order: int


class SocialLinkResponse(ApiModel):
    id: uuid.UUID
    platform: str
    url: str
    display_order: int


class ProfileResponse(ApiModel):
    """소유자용 전체 집합(편집 화면·생성/수정 응답)."""

    id: uuid.UUID
    slug: str
    full_name: str
    title: str | None = None
    phone: str | None = None
    address: str | None = None
    email: str
    avatar_url: str | None = None
    qr_code_url: str | None = None
    profile_url: str | None = None
    is_published: bool
    experiences: list[WorkExperienceResponse] = []
    social_links: list[SocialLinkResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PublicProfileResponse(ApiModel):
    """공개 조회용. 소유자 email·발행 상태 등 내부 필드 제외."""

    id: uuid.UUID
    slug: str
    full_name: str
    title: str | None = None
    phone: str | None = None
    address: str | None = None
    avatar_url: str | None = None
    qr_code_url: str | None = None
    experiences: list[WorkExperienceResponse] = []
    social_links: list[SocialLinkResponse] = []


class ProfileSummary(ApiModel):
    """GET /my-profiles 목록 항목."""

    id: uuid.UUID
    slug: str
    full_name: str
    title: str | None = None
    avatar_url: str | None = None
    qr_code_url: str | None = None
    profile_url: str | None = None
    is_published: bool
    experience_count: int = 0
    social_link_count: int = 0
    created_at: datetime | None = None


class ProfileEnvelope(ApiModel):
    message: str | None = None
    profile: ProfileResponse


class PublicProfileEnvelope(ApiModel):
    profile: PublicProfileResponse


class ProfileListResponse(ApiModel):
    profiles: list[ProfileSummary]


class QRCodeResponse(ApiModel):
    message: str
    qr_code_url: str
    profile_url: str


class AvatarUploadResponse(ApiModel):
    message: str
    avatar_url: str
