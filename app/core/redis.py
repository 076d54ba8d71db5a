"""Redis 비동기 클라이언트. 로그인·회원가입 IP별 Rate limit 카운터용."""

import logging
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY_PREFIX = "smartcard:ratelimit:"


def create_rate_limit_client() -> Any:
    """
    Rate limit용 비동기 Redis 클라이언트. max_connections·타임아웃 명시.
    redis_url 없으면 None(제한 비활성). lifespan에서 한 번 생성해 app.state에 보관.
    """
    if not settings.redis_url:
        return None
    import redis.asyncio as redis

    pool = redis.ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
    )
    return redis.Redis(connection_pool=pool)


async def hit_rate_limit(
    client: Any, scope: str, identifier: str, *, limit: int, window_seconds: int
) -> bool:
    """
    고정 윈도우 카운터 1 증가 후 한도 초과 여부 반환(True=초과).
    첫 요청에서만 EXPIRE 설정 → 윈도우 시작 시점 고정.
    Redis 장애 시 Fail-Open(False): 인증 자체를 막지 않음.
    """
    if client is None:
        return False
    key = f"{RATE_LIMIT_KEY_PREFIX}{scope}:{identifier}"
    try:
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, window_seconds)
        return count > limit
    except Exception as e:
        logger.warning("Rate limit check failed (scope=%s): %s", scope, e, exc_info=True)
        return False
