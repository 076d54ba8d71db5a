"""Health check 엔드포인트. Redis는 app.state 비동기 클라이언트 재사용(스레드 풀/동기 클라이언트 미사용)."""

import asyncio
import logging

from fastapi import APIRouter, Request
from sqlalchemy import text

from app.core.database import get_async_session_maker

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)

HEALTH_REDIS_PING_TIMEOUT = 2.0


async def _check_db() -> str:
    """DB 연결 상태. SELECT 1 실행. 'ok' 또는 'error'. DB 미초기화 시 'error'."""
    maker = get_async_session_maker()
    if not maker:
        return "error"
    try:
        async with maker() as session:
            await session.execute(text("SELECT 1"))
        return "ok"
    except Exception as e:
        logger.warning("Health check DB failure: %s", e)
        return "error"


async def _check_redis(request: Request) -> str:
    """Redis 연결 상태. Rate limit용 클라이언트 재사용. 미설정이면 'disabled'."""
    client = getattr(request.app.state, "redis_rate_limit_client", None)
    if client is None:
        return "disabled"
    try:
        await asyncio.wait_for(client.ping(), timeout=HEALTH_REDIS_PING_TIMEOUT)
        return "ok"
    except Exception as e:
        logger.warning("Health check Redis failure: %s", e)
        return "error"


@router.get("/health")
async def get_health(request: Request) -> dict[str, str]:
    """헬스 체크. DB(SELECT 1)·Redis(PING). 하나라도 error면 status=degraded."""
    db_status = await _check_db()
    redis_status = await _check_redis(request)
    status = "degraded" if "error" in (db_status, redis_status) else "ok"
    return {
        "status": status,
        "db": db_status,
        "redis": redis_status,
    }
