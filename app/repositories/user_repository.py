"""User Repository. DB 쿼리만 수행. email은 호출 측에서 이미 소문자로 정규화된 값."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


async def get_by_id(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    """id로 유저 조회."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalars().one_or_none()


async def get_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalars().one_or_none()


async def get_by_google_id(session: AsyncSession, google_id: str) -> User | None:
    result = await session.execute(select(User).where(User.google_id == google_id))
    return result.scalars().one_or_none()


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    full_name: str,
    password_hash: str | None = None,
    google_id: str | None = None,
) -> User:
    """INSERT 후 flush. 이메일 중복은 unique 제약(IntegrityError)으로 최종 보장."""
    user = User(
        email=email,
        full_name=full_name,
        password_hash=password_hash,
        google_id=google_id,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def link_google_id(session: AsyncSession, user: User, google_id: str) -> User:
    """기존 이메일 계정에 Google 계정 연결."""
    user.google_id = google_id
    await session.flush()
    return user


async def touch_last_login(session: AsyncSession, user: User) -> None:
    user.last_login_at = datetime.now(UTC)
    await session.flush()
