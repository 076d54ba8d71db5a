"""Profile API. 소유자 CRUD + 공개 조회. GET /{slug}는 다른 GET 경로보다 뒤에 등록해야 함."""

import logging
import uuid

from fastapi import APIRouter, Depends, File, UploadFile

from app.core.deps import get_current_user, get_upload_store, owned_profile_id
from app.core.storage import LocalFileStore
from app.schemas.auth import CurrentUser, MessageResponse
from app.schemas.profile import (
    AvatarUploadResponse,
    ProfileCreate,
    ProfileEnvelope,
    ProfileListResponse,
    ProfileResponse,
    ProfileSummary,
    ProfileUpdate,
    PublicProfileEnvelope,
    PublicProfileResponse,
    QRCodeResponse,
)
from app.services import profile_service
from app.services.avatar_service import store_avatar

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _owner_id(current_user: CurrentUser) -> uuid.UUID:
    return uuid.UUID(current_user.id)


@router.post("", response_model=ProfileEnvelope, status_code=201)
async def post_profile(
    payload: ProfileCreate,
    current_user: CurrentUser = Depends(get_current_user),
) -> ProfileEnvelope:
    """프로필 + 경력 + 소셜 링크를 한 번에 생성. QR 생성 실패 시 qrCodeUrl 없이 201."""
    profile = await profile_service.create_profile(_owner_id(current_user), payload)
    logger.info("Profile created: profile_id=%s slug=%s", profile.id, profile.slug)
    return ProfileEnvelope(
        message="Profile created successfully",
        profile=ProfileResponse.model_validate(profile),
    )


@router.post("/upload-avatar", response_model=AvatarUploadResponse)
async def post_upload_avatar(
    avatar: UploadFile | None = File(None),
    current_user: CurrentUser = Depends(get_current_user),
    store: LocalFileStore = Depends(get_upload_store),
) -> AvatarUploadResponse:
    data = await avatar.read() if avatar is not None else b""
    stored = await store_avatar(
        data,
        avatar.content_type if avatar is not None else None,
        avatar.filename if avatar is not None else None,
        store,
    )
    logger.info("Avatar uploaded: user_id=%s size=%d", current_user.id, stored.size)
    return AvatarUploadResponse(message="Avatar uploaded successfully", avatar_url=stored.url)


@router.get("/my-profiles", response_model=ProfileListResponse)
async def get_my_profiles(
    current_user: CurrentUser = Depends(get_current_user),
) -> ProfileListResponse:
    rows = await profile_service.list_my_profiles(_owner_id(current_user))
    return ProfileListResponse(
        profiles=[
            ProfileSummary.model_validate(profile).model_copy(
                update={"experience_count": experiences, "social_link_count": links}
            )
            for profile, experiences, links in rows
        ]
    )


@router.put("/{profile_id}", response_model=ProfileEnvelope)
async def put_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    profile_id: uuid.UUID = Depends(owned_profile_id),
) -> ProfileEnvelope:
    profile = await profile_service.update_profile(_owner_id(current_user), profile_id, payload)
    return ProfileEnvelope(
        message="Profile updated successfully",
        profile=ProfileResponse.model_validate(profile),
    )


@router.post("/{profile_id}/regenerate-qr", response_model=QRCodeResponse)
async def post_regenerate_qr(
    current_user: CurrentUser = Depends(get_current_user),
    profile_id: uuid.UUID = Depends(owned_profile_id),
) -> QRCodeResponse:
    qr_code_url, profile_url = await profile_service.regenerate_qr_code(
        _owner_id(current_user), profile_id
    )
    return QRCodeResponse(
        message="QR code regenerated successfully",
        qr_code_url=qr_code_url,
        profile_url=profile_url,
    )


@router.delete("/{profile_id}", response_model=MessageResponse)
async def delete_profile(
    current_user: CurrentUser = Depends(get_current_user),
    profile_id: uuid.UUID = Depends(owned_profile_id),
) -> MessageResponse:
    await profile_service.delete_profile(_owner_id(current_user), profile_id)
    logger.info("Profile deleted: profile_id=%s", profile_id)
    return MessageResponse(message="Profile deleted successfully")


@router.get("/edit/{profile_id}", response_model=ProfileEnvelope)
async def get_profile_for_edit(
    current_user: CurrentUser = Depends(get_current_user),
    profile_id: uuid.UUID = Depends(owned_profile_id),
) -> ProfileEnvelope:
    profile = await profile_service.get_profile_for_edit(_owner_id(current_user), profile_id)
    return ProfileEnvelope(profile=ProfileResponse.model_validate(profile))


@router.get("/{slug}", response_model=PublicProfileEnvelope)
async def get_public_profile(slug: str) -> PublicProfileEnvelope:
    """공개 조회(인증 불필요). 발행된 프로필만."""
    profile = await profile_service.get_public_profile(slug)
    return PublicProfileEnvelope(profile=PublicProfileResponse.model_validate(profile))
