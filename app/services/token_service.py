"""Token Service. Access/Refresh JWT 발급·검증. 저장소 없음(무상태 검증).

- Access: JWT_ACCESS_SECRET, 기본 15분. Refresh: JWT_REFRESH_SECRET, 기본 7일. 두 시크릿은 서로 달라야 함.
- 서버 측 폐기 목록 없음. Refresh 재사용을 막지 않으므로 탈취 시 노출 기간 = 토큰 TTL.
"""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from app.core.config import settings
from app.core.exceptions import AuthError
from app.schemas.auth import TokenPair

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenExpiredError(AuthError):
    """서명은 유효하나 exp 경과."""


class TokenInvalidError(AuthError):
    """서명 불일치·형식 오류·iss/aud/type 불일치."""


def _access_secret() -> str:
    return settings.jwt_access_secret.get_secret_value()


def _refresh_secret() -> str:
    return settings.jwt_refresh_secret.get_secret_value()


def _encode(user_id: str, email: str, token_type: str, secret: str, lifetime: timedelta) -> str:
    if not secret:
        raise AuthError("JWT secret not configured")
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "email": email,
        "type": token_type,
        # 같은 초에 재발급해도 토큰 문자열이 달라지도록.
        "jti": str(uuid.uuid4()),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def issue_access_token(user_id: str, email: str) -> str:
    return _encode(
        user_id,
        email,
        ACCESS_TOKEN_TYPE,
        _access_secret(),
        timedelta(seconds=settings.jwt_access_expire_seconds),
    )


def issue_refresh_token(user_id: str, email: str) -> str:
    return _encode(
        user_id,
        email,
        REFRESH_TOKEN_TYPE,
        _refresh_secret(),
        timedelta(days=settings.jwt_refresh_expire_days),
    )


def issue_token_pair(user_id: str, email: str) -> TokenPair:
    """로그인·회원가입·refresh 공통. 호출마다 새 쌍을 발급(rotation)."""
    return TokenPair(
        access_token=issue_access_token(user_id, email),
        refresh_token=issue_refresh_token(user_id, email),
    )


def _decode(token: str, secret: str, token_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["exp", "iat", "sub", "type"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except jwt.InvalidSignatureError as e:
        raise TokenInvalidError("Invalid token signature") from e
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError("Invalid token") from e
    if payload.get("type") != token_type:
        raise TokenInvalidError("Invalid token type")
    return payload


def decode_access_token(token: str) -> dict[str, Any]:
    """Access 토큰 검증. 만료는 TokenExpiredError, 그 외 무효는 TokenInvalidError."""
    return _decode(token, _access_secret(), ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict[str, Any]:
    return _decode(token, _refresh_secret(), REFRESH_TOKEN_TYPE)


def verify_access_token(token: str) -> dict[str, Any] | None:
    """무효·만료 시 None. 호출 측으로 예외를 던지지 않음."""
    try:
        return decode_access_token(token)
    except AuthError:
        return None


def verify_refresh_token(token: str) -> dict[str, Any] | None:
    try:
        return decode_refresh_token(token)
    except AuthError:
        return None
