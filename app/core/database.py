"""비동기 DB 연결 및 세션 관리. SQLAlchemy 2.0 + asyncpg.

엔진·세션 팩토리는 전역 클라이언트 대신 Holder에 보관하고 lifespan에서 열고 닫는다.
테스트는 override_db_for_testing으로 자체 엔진(SQLite 등)을 주입한다.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

import sentry_sdk
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)


class _DbHolder:
    engine: AsyncEngine | None = None
    async_session_maker: async_sessionmaker[AsyncSession] | None = None


_db_holder = _DbHolder()

# 같은 요청 컨텍스트 안의 중첩 transaction() 호출이 하나의 세션을 공유하도록 전파.
_session_context: ContextVar[AsyncSession | None] = ContextVar(
    "session_context", default=None
)


def _async_database_url(url: str) -> str:
    """postgresql:// 등 어떤 스킴이 와도 asyncpg 드라이버로 변환."""
    return make_url(url.strip()).set(drivername="postgresql+asyncpg").render_as_string(
        hide_password=False
    )


def get_async_session_maker() -> async_sessionmaker[AsyncSession] | None:
    return _db_holder.async_session_maker


def _make_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


def init_db() -> None:
    """DATABASE_URL이 있으면 엔진·세션 팩토리 생성. 없으면 경고만 남기고 DB 기능 비활성."""
    if not settings.database_url:
        logger.warning("DATABASE_URL not set. DB features disabled.")
        return

    _db_holder.engine = create_async_engine(
        _async_database_url(settings.database_url),
        echo=False,
        pool_pre_ping=True,
    )
    _db_holder.async_session_maker = _make_session_maker(_db_holder.engine)


def override_db_for_testing(
    engine: AsyncEngine | None = None,
    async_session_maker_instance: async_sessionmaker[AsyncSession] | None = None,
) -> None:
    """테스트용. engine만 넘기면 세션 팩토리는 동일 옵션으로 만들어 준다."""
    if engine is not None and async_session_maker_instance is None:
        async_session_maker_instance = _make_session_maker(engine)
    _db_holder.engine = engine
    _db_holder.async_session_maker = async_session_maker_instance


async def dispose_db() -> None:
    """종료 시그널(lifespan 종료)에서 커넥션 풀 정리."""
    engine = _db_holder.engine
    if engine is not None:
        await engine.dispose()


async def verify_db_connection() -> None:
    """
    부팅 시 DB 연결 검증(SELECT 1). 실패하면 간격을 두고 재시도, 끝내 실패 시 Sentry 보고 후 부팅 중단.
    DB 컨테이너가 앱보다 늦게 뜨는 배포 환경 대비.
    """
    maker = get_async_session_maker()
    if not _db_holder.engine or not maker:
        return

    last_exc: Exception | None = None
    retries = max(1, settings.db_connect_retries)
    interval = max(0.5, settings.db_connect_retry_interval_sec)

    for attempt in range(1, retries + 1):
        try:
            async with maker() as session:
                await session.execute(text("SELECT 1"))
            return
        except Exception as exc:
            last_exc = exc
            if attempt < retries:
                logger.warning(
                    "Database connection attempt %d/%d failed: %s. Retrying in %.1fs...",
                    attempt,
                    retries,
                    exc,
                    interval,
                )
                await asyncio.sleep(interval)

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("context", "database_connection_check")
        sentry_sdk.capture_exception(last_exc)

    logger.critical(
        "Database connection failed after %d attempts: %s. Aborting startup.",
        retries,
        last_exc,
        exc_info=True,
    )
    raise RuntimeError(
        "Database connection failed after %d attempts: %s" % (retries, last_exc)
    ) from last_exc


@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession, None]:
    """
    서비스 레이어용 트랜잭션. 정상 종료 시 commit, 예외 시 rollback 후 재전파.
    이미 열린 transaction() 안에서 호출하면 같은 세션을 돌려주고 commit/rollback은 최외곽에서만.
    """
    maker = get_async_session_maker()
    if not maker:
        raise RuntimeError("Database not initialized. Set DATABASE_URL.")

    existing = _session_context.get()
    if existing is not None:
        yield existing
        return

    session: AsyncSession | None = None
    token: Any = None
    try:
        session = maker()
        token = _session_context.set(session)
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    finally:
        if token is not None:
            _session_context.reset(token)
        if session is not None:
            await session.close()
