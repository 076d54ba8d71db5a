"""Auth API. 이메일/비밀번호 + Google OAuth. 토큰은 HttpOnly 쿠키로 전달."""

import logging
import secrets

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pyjwt_key_fetcher import AsyncKeyFetcher

from app.core.config import settings
from app.core.cookies import REFRESH_COOKIE, clear_token_cookies, set_token_cookies
from app.core.deps import (
    get_current_user,
    get_google_key_fetcher,
    get_httpx_client,
    rate_limiter,
)
from app.core.exceptions import AuthError, ServiceError
from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginPayload,
    MessageResponse,
    RefreshResponse,
    RegisterPayload,
)
from app.schemas.user import MeResponse, UserResponse
from app.services.auth_service import (
    google_authorization_url,
    google_identity_from_code,
    login_user,
    oauth_callback,
    refresh_session,
    register_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

OAUTH_STATE_COOKIE = "oauthState"
OAUTH_STATE_MAX_AGE = 10 * 60

register_limit = rate_limiter(
    "register",
    settings.register_rate_limit,
    settings.register_rate_window_seconds,
    "Too many accounts created from this IP, please try again after an hour",
)
login_limit = rate_limiter(
    "login",
    settings.login_rate_limit,
    settings.login_rate_window_seconds,
    "Too many login attempts from this IP, please try again after 15 minutes",
)


def _frontend(path: str = "") -> str:
    return f"{settings.frontend_url.rstrip('/')}{path}"


def _oauth_error_redirect() -> RedirectResponse:
    response = RedirectResponse(_frontend("?error=authentication_failed"), status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/")
    return response


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    dependencies=[Depends(register_limit)],
)
async def post_register(payload: RegisterPayload, response: Response) -> AuthResponse:
    """회원가입 후 바로 로그인 상태(쿠키 설정)."""
    user, tokens = await register_user(payload.email, payload.password, payload.full_name)
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    logger.info("User registered: user_id=%s", user.id)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        access_token=tokens.access_token,
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(login_limit)])
async def post_login(payload: LoginPayload, response: Response) -> AuthResponse:
    user, tokens = await login_user(payload.email, payload.password)
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        access_token=tokens.access_token,
    )


@router.post("/refresh", response_model=RefreshResponse)
async def post_refresh(request: Request, response: Response) -> RefreshResponse | JSONResponse:
    """
    Refresh 쿠키로 새 토큰 쌍 발급. 실패 시 쿠키를 지운 401.
    예외를 올리면 주입된 response의 쿠키 삭제가 사라지므로 JSONResponse를 직접 반환.
    """
    try:
        tokens = await refresh_session(request.cookies.get(REFRESH_COOKIE))
    except AuthError as e:
        failed = JSONResponse(status_code=401, content={"detail": e.message})
        clear_token_cookies(failed)
        return failed
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    return RefreshResponse(message="Token refreshed successfully", access_token=tokens.access_token)


@router.post("/logout", response_model=MessageResponse)
async def post_logout(response: Response) -> MessageResponse:
    """항상 200. 쿠키 삭제 중 오류도 로그만 남김(멱등)."""
    try:
        clear_token_cookies(response)
    except Exception:
        logger.exception("Failed to clear auth cookies on logout")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: CurrentUser = Depends(get_current_user)) -> MeResponse:
    return MeResponse(
        message="Authenticated",
        user={"id": current_user.id, "email": current_user.email},
    )


@router.get("/google")
async def get_google_login() -> RedirectResponse:
    """Google 동의 화면으로 리다이렉트. CSRF 방지 state는 쿠키에 보관(콜백이 top-level GET이라 Lax)."""
    if not settings.google_oauth_enabled:
        logger.warning("Google OAuth requested but not configured")
        return _oauth_error_redirect()
    state = secrets.token_urlsafe(32)
    response = RedirectResponse(google_authorization_url(state), status_code=302)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    return response


@router.get("/google/callback")
async def get_google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    http_client: httpx.AsyncClient | None = Depends(get_httpx_client),
    key_fetcher: AsyncKeyFetcher | None = Depends(get_google_key_fetcher),
) -> RedirectResponse:
    """
    JSON 에러 대신 리다이렉트로 응답: 성공 → {FRONTEND_URL}/dashboard (쿠키 설정),
    실패 → {FRONTEND_URL}?error=authentication_failed.
    """
    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if (
        not code
        or not state
        or not expected_state
        or not secrets.compare_digest(state, expected_state)
    ):
        logger.warning("Google callback rejected: missing code or state mismatch")
        return _oauth_error_redirect()
    if http_client is None or key_fetcher is None:
        logger.error("Google callback without HTTP client or key fetcher")
        return _oauth_error_redirect()

    try:
        identity = await google_identity_from_code(
            code, http_client=http_client, key_fetcher=key_fetcher
        )
        tokens = await oauth_callback(identity)
    except (ServiceError, httpx.HTTPError) as e:
        logger.warning("Google login failed: %s", e)
        return _oauth_error_redirect()

    response = RedirectResponse(_frontend("/dashboard"), status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/")
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    return response
