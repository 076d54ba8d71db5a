"""ProfileView Repository. 조회 이벤트는 추가만 하고 수정·개별 삭제하지 않음."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile_view import ProfileView


async def add_view(
    session: AsyncSession,
    *,
    profile_id: uuid.UUID,
    source: str,
    ip_address: str | None,
    user_agent: str | None,
    referrer: str | None,
) -> ProfileView:
    view = ProfileView(
        profile_id=profile_id,
        source=source,
        ip_address=ip_address,
        user_agent=user_agent,
        referrer=referrer,
    )
    session.add(view)
    await session.flush()
    return view


async def list_views(session: AsyncSession, profile_id: uuid.UUID) -> list[ProfileView]:
    """프로필의 전체 조회 이벤트(최신순)."""
    result = await session.execute(
        select(ProfileView)
        .where(ProfileView.profile_id == profile_id)
        .order_by(ProfileView.timestamp.desc())
    )
    return list(result.scalars().all())
