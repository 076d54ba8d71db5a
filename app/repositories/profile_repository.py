"""Profile Repository. 프로필 + 자식 컬렉션(경력·소셜 링크) 쿼리.

자식 컬렉션은 부분 수정하지 않는다. replace_* 는 해당 프로필의 행을 모두 지우고 배열 순서대로 다시 넣는다.
"""

import uuid
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.profile import Profile
from app.models.social_link import SocialLink
from app.models.work_experience import WorkExperience

# 집합(프로필 + 정렬된 자식) 조회 옵션. relationship order_by로 display_order 순.
PROFILE_AGGREGATE_OPTIONS = (
    selectinload(Profile.experiences),
    selectinload(Profile.social_links),
)


async def get_slugs_with_base(session: AsyncSession, base: str) -> set[str]:
    """base 또는 base-N 형태로 이미 쓰인 슬러그 집합. base는 [a-z0-9-]만 포함(LIKE 이스케이프 불필요)."""
    result = await session.execute(
        select(Profile.slug).where(or_(Profile.slug == base, Profile.slug.like(f"{base}-%")))
    )
    return set(result.scalars().all())


async def get_owned(
    session: AsyncSession, profile_id: uuid.UUID, user_id: uuid.UUID
) -> Profile | None:
    """소유자 일치 시에만 반환. 없음/남의 것 구분 없이 None."""
    result = await session.execute(
        select(Profile).where(Profile.id == profile_id, Profile.user_id == user_id)
    )
    return result.scalars().one_or_none()


async def get_aggregate(session: AsyncSession, profile_id: uuid.UUID) -> Profile | None:
    """자식 컬렉션까지 새로 읽음. 같은 세션에서 방금 교체한 컬렉션을 반영하도록 populate_existing."""
    result = await session.execute(
        select(Profile)
        .options(*PROFILE_AGGREGATE_OPTIONS)
        .where(Profile.id == profile_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().one_or_none()


async def get_owned_aggregate(
    session: AsyncSession, profile_id: uuid.UUID, user_id: uuid.UUID
) -> Profile | None:
    result = await session.execute(
        select(Profile)
        .options(*PROFILE_AGGREGATE_OPTIONS)
        .where(Profile.id == profile_id, Profile.user_id == user_id)
    )
    return result.scalars().one_or_none()


async def get_published_by_slug(session: AsyncSession, slug: str) -> Profile | None:
    result = await session.execute(
        select(Profile)
        .options(*PROFILE_AGGREGATE_OPTIONS)
        .where(Profile.slug == slug, Profile.is_published.is_(True))
    )
    return result.scalars().one_or_none()


async def get_published(session: AsyncSession, profile_id: uuid.UUID) -> Profile | None:
    result = await session.execute(
        select(Profile).where(Profile.id == profile_id, Profile.is_published.is_(True))
    )
    return result.scalars().one_or_none()


async def list_by_user_with_counts(
    session: AsyncSession, user_id: uuid.UUID
) -> list[tuple[Profile, int, int]]:
    """유저의 프로필 목록(최신순) + 경력·소셜 링크 개수. 자식 행은 로드하지 않음."""
    experience_count = (
        select(func.count(WorkExperience.id))
        .where(WorkExperience.profile_id == Profile.id)
        .correlate(Profile)
        .scalar_subquery()
    )
    social_link_count = (
        select(func.count(SocialLink.id))
        .where(SocialLink.profile_id == Profile.id)
        .correlate(Profile)
        .scalar_subquery()
    )
    result = await session.execute(
        select(Profile, experience_count, social_link_count)
        .where(Profile.user_id == user_id)
        .order_by(Profile.created_at.desc())
    )
    return [(profile, exp or 0, links or 0) for profile, exp, links in result.all()]


async def insert_profile(session: AsyncSession, **values: Any) -> Profile:
    """INSERT 후 flush. 슬러그 충돌은 여기서 IntegrityError로 드러남."""
    profile = Profile(**values)
    session.add(profile)
    await session.flush()
    return profile


async def update_fields(session: AsyncSession, profile: Profile, values: dict[str, Any]) -> None:
    for key, value in values.items():
        setattr(profile, key, value)
    await session.flush()


async def replace_experiences(
    session: AsyncSession, profile_id: uuid.UUID, items: list[dict[str, Any]]
) -> None:
    """기존 경력 전부 삭제 후 재생성. display_order = 배열 인덱스."""
    await session.execute(delete(WorkExperience).where(WorkExperience.profile_id == profile_id))
    session.add_all(
        WorkExperience(profile_id=profile_id, display_order=index, **item)
        for index, item in enumerate(items)
    )
    await session.flush()


async def replace_social_links(
    session: AsyncSession, profile_id: uuid.UUID, items: list[dict[str, Any]]
) -> None:
    """기존 소셜 링크 전부 삭제 후 재생성. platform 대문자, display_order = 배열 인덱스."""
    await session.execute(delete(SocialLink).where(SocialLink.profile_id == profile_id))
    session.add_all(
        SocialLink(
            profile_id=profile_id,
            platform=item["platform"].upper(),
            url=item["url"],
            display_order=index,
        )
        for index, item in enumerate(items)
    )
    await session.flush()


async def delete_by_id(session: AsyncSession, profile_id: uuid.UUID) -> None:
    """자식 테이블은 FK ON DELETE CASCADE로 함께 삭제."""
    await session.execute(delete(Profile).where(Profile.id == profile_id))


async def set_qr_code(
    session: AsyncSession,
    profile_id: uuid.UUID,
    qr_code_url: str,
    profile_url: str | None = None,
) -> None:
    values: dict[str, Any] = {"qr_code_url": qr_code_url}
    if profile_url is not None:
        values["profile_url"] = profile_url
    await session.execute(update(Profile).where(Profile.id == profile_id).values(**values))
