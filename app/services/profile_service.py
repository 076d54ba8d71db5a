"""Profile Service. 프로필 + 자식 컬렉션 원자적 생성/수정, 슬러그 할당, QR 코드 관리.

- 생성/수정은 하나의 transaction() 안에서 프로필 행 + 경력 + 소셜 링크를 쓰고 전체 집합을 다시 읽는다.
- 자식 컬렉션은 배열이 오면(빈 배열 포함) 통째로 교체, 생략되면 유지. 동시 수정은 병합되지 않음(마지막 요청 승).
- QR 생성은 커밋 이후. 생성 시 실패는 치명적이지 않음(로그만, qrCodeUrl 없이 성공 응답).
"""

import logging
import re
import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import transaction
from app.core.exceptions import ConflictError, InvalidFieldError, NotFoundError
from app.models.profile import Profile
from app.repositories import profile_repository as repo
from app.schemas.profile import ProfileCreate, ProfileUpdate
from app.services.qr_service import delete_qr_code, generate_qr_code

logger = logging.getLogger(__name__)

NOT_FOUND_OR_UNAUTHORIZED = "Profile not found or unauthorized"
FALLBACK_SLUG = "profile"
# 동시 생성으로 슬러그 unique 제약에 걸렸을 때 다음 번호로 재시도하는 최대 횟수.
SLUG_INSERT_ATTEMPTS = 5
# 요청 필드 → 수정 가능한 컬럼
UPDATABLE_FIELDS = (
    "full_name",
    "title",
    "phone",
    "address",
    "email",
    "avatar_url",
    "is_published",
)

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def slugify(full_name: str) -> str:
    """소문자화 → 영숫자 외 연속 구간을 하이픈 하나로 → 앞뒤 하이픈 제거. 남는 게 없으면 'profile'."""
    base = _NON_ALNUM_RUN.sub("-", full_name.lower()).strip("-")
    return base or FALLBACK_SLUG


def next_free_slug(base: str, taken: set[str]) -> str:
    """base, base-1, base-2 ... 순서로 처음 비어 있는 값. 무작위 접미사 없음."""
    if base not in taken:
        return base
    counter = 1
    while f"{base}-{counter}" in taken:
        counter += 1
    return f"{base}-{counter}"


async def generate_unique_slug(session: AsyncSession, full_name: str) -> str:
    """
    조회 후 결정(read-check-then-create). insert와 같은 직렬화 트랜잭션이 아니므로
    동시 생성 시 같은 슬러그가 나올 수 있음 → unique 제약 위반을 create_profile이 재시도로 처리.
    """
    base = slugify(full_name)
    taken = await repo.get_slugs_with_base(session, base)
    return next_free_slug(base, taken)


def public_profile_url(slug: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/{slug}"


def _is_slug_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "uq_profiles_slug" in message or "profiles.slug" in message


def _experience_rows(payload: ProfileCreate | ProfileUpdate) -> list[dict[str, Any]]:
    return [item.model_dump() for item in payload.work_experiences or []]


def _social_link_rows(payload: ProfileCreate | ProfileUpdate) -> list[dict[str, Any]]:
    return [item.model_dump() for item in payload.social_links or []]


async def _insert_aggregate(
    user_id: uuid.UUID, payload: ProfileCreate, full_name: str, email: str
) -> Profile:
    async with transaction() as session:
        slug = await generate_unique_slug(session, full_name)
        profile = await repo.insert_profile(
            session,
            user_id=user_id,
            slug=slug,
            full_name=full_name,
            title=payload.title,
            phone=payload.phone,
            address=payload.address,
            email=email,
            avatar_url=payload.avatar_url,
            profile_url=public_profile_url(slug),
            is_published=True,
        )
        if payload.work_experiences:
            await repo.replace_experiences(session, profile.id, _experience_rows(payload))
        if payload.social_links:
            await repo.replace_social_links(session, profile.id, _social_link_rows(payload))
        aggregate = await repo.get_aggregate(session, profile.id)
    if aggregate is None:
        raise RuntimeError("Profile not found after insert")
    return aggregate


async def create_profile(user_id: uuid.UUID, payload: ProfileCreate) -> Profile:
    """
    fullName·email 필수. 슬러그 할당 → 트랜잭션(프로필·경력·소셜 링크 insert, 집합 재조회) → 커밋 후 QR 생성.
    슬러그 unique 위반은 실패가 아니라 다음 번호로 재시도 신호.
    """
    full_name = (payload.full_name or "").strip()
    email = (payload.email or "").strip()
    if not full_name or not email:
        raise InvalidFieldError("Full name and email are required")

    profile: Profile | None = None
    for attempt in range(1, SLUG_INSERT_ATTEMPTS + 1):
        try:
            profile = await _insert_aggregate(user_id, payload, full_name, email)
            break
        except IntegrityError as e:
            if not _is_slug_conflict(e):
                raise
            logger.warning(
                "Slug collision on profile insert (attempt %d/%d). Retrying.",
                attempt,
                SLUG_INSERT_ATTEMPTS,
            )
    if profile is None:
        raise ConflictError("Could not allocate a unique slug. Please try again.")

    try:
        qr_code_url = await generate_qr_code(profile.profile_url or public_profile_url(profile.slug), profile.id)
        async with transaction() as session:
            await repo.set_qr_code(session, profile.id, qr_code_url)
        profile.qr_code_url = qr_code_url
    except Exception:
        logger.exception("QR code generation failed: profile_id=%s", profile.id)

    return profile


async def update_profile(
    user_id: uuid.UUID, profile_id: uuid.UUID, payload: ProfileUpdate
) -> Profile:
    """보낸 필드만 수정. 소유자가 아니면 없는 것과 같은 404."""
    values = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if key in UPDATABLE_FIELDS
    }
    # NOT NULL 컬럼에 명시적 null이 오면 무시.
    for required in ("full_name", "email", "is_published"):
        if values.get(required, "") is None:
            values.pop(required)
    for required in ("full_name", "email"):
        if required in values:
            values[required] = values[required].strip()
            if not values[required]:
                raise InvalidFieldError("Full name and email are required")

    async with transaction() as session:
        profile = await repo.get_owned(session, profile_id, user_id)
        if profile is None:
            raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED)
        if values:
            await repo.update_fields(session, profile, values)
        if payload.work_experiences is not None:
            await repo.replace_experiences(session, profile_id, _experience_rows(payload))
        if payload.social_links is not None:
            await repo.replace_social_links(session, profile_id, _social_link_rows(payload))
        aggregate = await repo.get_aggregate(session, profile_id)
    if aggregate is None:
        raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED)
    return aggregate


async def delete_profile(user_id: uuid.UUID, profile_id: uuid.UUID) -> None:
    """프로필 삭제(자식·조회 로그는 DB CASCADE). QR 파일은 best-effort 삭제."""
    async with transaction() as session:
        profile = await repo.get_owned(session, profile_id, user_id)
        if profile is None:
            raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED)
        await repo.delete_by_id(session, profile_id)
    await delete_qr_code(profile_id)


async def regenerate_qr_code(user_id: uuid.UUID, profile_id: uuid.UUID) -> tuple[str, str]:
    """
    기존 QR 삭제 → 현재 슬러그로 공개 URL 재계산 → 새 QR 생성·저장. (qr_code_url, profile_url) 반환.
    이 작업에서는 QR 생성 실패가 곧 요청 실패(500).
    """
    async with transaction() as session:
        profile = await repo.get_owned(session, profile_id, user_id)
        if profile is None:
            raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED)
        slug = profile.slug

    await delete_qr_code(profile_id)
    profile_url = public_profile_url(slug)
    qr_code_url = await generate_qr_code(profile_url, profile_id)
    async with transaction() as session:
        await repo.set_qr_code(session, profile_id, qr_code_url, profile_url=profile_url)
    return qr_code_url, profile_url


async def list_my_profiles(user_id: uuid.UUID) -> list[tuple[Profile, int, int]]:
    async with transaction() as session:
        return await repo.list_by_user_with_counts(session, user_id)


async def get_profile_for_edit(user_id: uuid.UUID, profile_id: uuid.UUID) -> Profile:
    async with transaction() as session:
        profile = await repo.get_owned_aggregate(session, profile_id, user_id)
    if profile is None:
        raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED)
    return profile


async def get_public_profile(slug: str) -> Profile:
    """발행된 프로필만. 미발행·삭제·없는 슬러그 모두 404."""
    async with transaction() as session:
        profile = await repo.get_published_by_slug(session, slug)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile
