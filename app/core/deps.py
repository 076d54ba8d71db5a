"""FastAPI 의존성. 앱 생명주기 객체(HTTP 클라이언트·Google Key Fetcher·Redis) 주입 + Request Gate + Rate limit."""

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pyjwt_key_fetcher import AsyncKeyFetcher

from app.core.cookies import ACCESS_COOKIE
from app.core.exceptions import AuthError, NotFoundError
from app.core.redis import hit_rate_limit
from app.core.storage import LocalFileStore, get_file_store
from app.schemas.auth import CurrentUser
from app.services.profile_service import NOT_FOUND_OR_UNAUTHORIZED
from app.services.token_service import TokenExpiredError, decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_httpx_client(request: Request) -> httpx.AsyncClient | None:
    """
    앱 lifespan에서 생성한 싱글톤 AsyncClient 반환.
    매 요청마다 새 클라이언트를 만들지 않아 소켓 고갈(TIME_WAIT) 방지.
    """
    return getattr(request.app.state, "httpx_client", None)


def get_google_key_fetcher(request: Request) -> AsyncKeyFetcher | None:
    """앱 lifespan에서 생성한 Google JWKS AsyncKeyFetcher 싱글톤."""
    return getattr(request.app.state, "google_key_fetcher", None)


def get_rate_limit_client(request: Request) -> Any:
    """Rate limit용 Redis 비동기 클라이언트. 미설정 시 None(제한 비활성)."""
    return getattr(request.app.state, "redis_rate_limit_client", None)


def get_upload_store() -> LocalFileStore:
    return get_file_store()


def client_ip(request: Request) -> str | None:
    """X-Forwarded-For 첫 항목, 없으면 소켓 peer 주소."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """
    Request Gate. accessToken 쿠키 우선, 없으면 Authorization: Bearer.
    서명·만료만 검증하고 DB는 조회하지 않음(삭제된 유저도 토큰 만료 전까지 통과).
    """
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise HTTPException(status_code=401, detail="Access token not found")
    try:
        claims = decode_access_token(token)
    except TokenExpiredError:
        raise HTTPException(status_code=401, detail="Access token has expired") from None
    except AuthError as e:
        raise HTTPException(status_code=401, detail=e.message) from None
    return CurrentUser(id=str(claims["sub"]), email=str(claims.get("email", "")))


def rate_limiter(
    scope: str, limit: int, window_seconds: int, message: str
) -> Callable[..., Awaitable[None]]:
    """IP별 고정 윈도우 제한 의존성. 한도 초과 시 429 + scope별 메시지."""

    async def _check(request: Request, client: Any = Depends(get_rate_limit_client)) -> None:
        identifier = client_ip(request) or "unknown"
        if await hit_rate_limit(
            client, scope, identifier, limit=limit, window_seconds=window_seconds
        ):
            logger.warning("Rate limit exceeded: scope=%s ip=%s", scope, identifier)
            raise HTTPException(status_code=429, detail=message)

    return _check


def owned_profile_id(profile_id: str) -> uuid.UUID:
    """경로의 profile_id. UUID 형식이 아니면 422 대신 없는 프로필과 같은 404."""
    try:
        return uuid.UUID(profile_id)
    except ValueError as e:
        raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED) from e
