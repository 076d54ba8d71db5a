"""인증 쿠키 발급·삭제. HttpOnly + SameSite=Strict, 프로덕션에서만 Secure."""

from fastapi import Response

from app.core.config import settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": "strict",
        "path": "/",
    }


def set_token_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """Access(기본 15분)·Refresh(기본 7일) 쿠키 설정. max_age는 토큰 만료와 동일."""
    options = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=settings.jwt_access_expire_seconds,
        **options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=settings.jwt_refresh_expire_days * 24 * 60 * 60,
        **options,
    )


def clear_token_cookies(response: Response) -> None:
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
