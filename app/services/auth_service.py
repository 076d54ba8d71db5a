"""Auth Service (세션 관리). 회원가입·로그인·토큰 갱신·Google OAuth.

세션 객체를 저장하지 않는다. 상태는 요청마다 토큰으로만 판단:
미인증 → 인증(Access 유효) → 만료(Access 만료, Refresh 유효) → 종료(Refresh 무효/만료 또는 로그아웃).
쿠키 설정·삭제는 라우터(app.core.cookies)에서 수행.
"""

import logging
import uuid
from typing import Any
from urllib.parse import urlencode

import httpx
import jwt
from pydantic import ValidationError
from pyjwt_key_fetcher import AsyncKeyFetcher
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import transaction
from app.core.exceptions import AuthError, ConflictError, InvalidFieldError
from app.models.user import User
from app.repositories.user_repository import (
    create_user,
    get_by_email,
    get_by_google_id,
    get_by_id,
    link_google_id,
    touch_last_login,
)
from app.schemas.auth import GoogleTokenResponse, OAuthIdentity, TokenPair
from app.services.credentials import (
    check_password,
    hash_password,
    normalize_email,
    validate_email,
    validate_password,
)
from app.services.token_service import issue_token_pair, verify_refresh_token

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

# 로그인 실패 메시지는 하나로 통일(계정 존재 여부 노출 방지).
INVALID_CREDENTIALS = "Invalid email or password"
OAUTH_ONLY_ACCOUNT = "This account uses Google login. Please sign in with Google."
INVALID_REFRESH = "Invalid or expired refresh token"


def _require_email(email: str) -> str:
    if not validate_email(email):
        raise InvalidFieldError("Please provide a valid email address")
    return normalize_email(email)


async def register_user(
    email: str | None, password: str | None, full_name: str | None
) -> tuple[User, TokenPair]:
    """
    회원가입. 검증 순서: 필수값 → 이메일 형식 → 비밀번호 정책 → 중복(대소문자 무시).
    정책 위반 비밀번호는 해시·저장 단계에 도달하지 않음.
    """
    if not email or not password or not (full_name or "").strip():
        raise InvalidFieldError("Email, password, and fullName are required")
    normalized = _require_email(email)
    check = validate_password(password)
    if not check.valid:
        raise InvalidFieldError(check.message or "Invalid password")

    async with transaction() as session:
        if await get_by_email(session, normalized) is not None:
            raise ConflictError("An account with this email already exists")
        password_hash = await hash_password(password)
        try:
            user = await create_user(
                session,
                email=normalized,
                full_name=full_name.strip(),
                password_hash=password_hash,
            )
        except IntegrityError as e:
            # 동시 가입 레이스. unique 제약이 최종 판정.
            raise ConflictError("An account with this email already exists") from e

    return user, issue_token_pair(str(user.id), user.email)


async def login_user(email: str | None, password: str | None) -> tuple[User, TokenPair]:
    """
    이메일/비밀번호 로그인. 유저 없음·해시 불일치는 같은 메시지.
    OAuth 전용 계정(해시 없음)만 Google 로그인 안내 메시지로 구분.
    """
    if not email or not password:
        raise InvalidFieldError("Email and password are required")
    normalized = _require_email(email)

    async with transaction() as session:
        user = await get_by_email(session, normalized)
        if user is None:
            raise AuthError(INVALID_CREDENTIALS)
        if not user.password_hash:
            raise AuthError(OAUTH_ONLY_ACCOUNT)
        if not await check_password(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)
        await touch_last_login(session, user)

    return user, issue_token_pair(str(user.id), user.email)


async def refresh_session(refresh_token: str | None) -> TokenPair:
    """
    Refresh 쿠키로 새 Access+Refresh 쌍 발급(매번 rotation).
    이전 Refresh 토큰은 추적·무효화하지 않음: 같은 토큰으로 두 번 호출해도 둘 다 성공.
    실패 시 AuthError → 라우터가 쿠키 삭제 후 401.
    """
    if not refresh_token:
        raise AuthError("Refresh token not found")
    claims = verify_refresh_token(refresh_token)
    if claims is None:
        raise AuthError(INVALID_REFRESH)
    try:
        user_id = uuid.UUID(str(claims["sub"]))
    except ValueError as e:
        raise AuthError(INVALID_REFRESH) from e

    async with transaction() as session:
        user = await get_by_id(session, user_id)
    if user is None:
        raise AuthError("User not found")
    return issue_token_pair(str(user.id), user.email)


async def upsert_oauth_user(session: AsyncSession, identity: OAuthIdentity) -> User:
    """google_id로 찾고, 없으면 같은 이메일 계정에 연결, 그것도 없으면 비밀번호 없는 계정 생성."""
    user = await get_by_google_id(session, identity.provider_user_id)
    if user is not None:
        return user
    email = normalize_email(identity.email)
    user = await get_by_email(session, email)
    if user is not None:
        return await link_google_id(session, user, identity.provider_user_id)
    return await create_user(
        session,
        email=email,
        full_name=identity.full_name or email.split("@")[0],
        google_id=identity.provider_user_id,
    )


async def oauth_callback(identity: OAuthIdentity | None) -> TokenPair:
    """외부 IdP 검증이 끝난 신원으로 토큰 발급. 신원 없음은 AuthError(라우터가 에러 URL로 리다이렉트)."""
    if identity is None:
        raise AuthError("authentication_failed")
    async with transaction() as session:
        user = await upsert_oauth_user(session, identity)
        await touch_last_login(session, user)
    return issue_token_pair(str(user.id), user.email)


def google_authorization_url(state: str) -> str:
    """Google 동의 화면 URL. state는 콜백에서 쿠키 값과 비교."""
    params = {
        "client_id": settings.google_client_id or "",
        "redirect_uri": settings.google_redirect_uri or "",
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"


async def exchange_google_code(code: str, client: httpx.AsyncClient) -> GoogleTokenResponse:
    """
    구글 OAuth Authorization Code를 토큰으로 교환.
    Pydantic 스키마로 검증. 네트워크 예외(Timeout, Connect) 시 AuthError로 변환(500 전파 방지).
    """
    client_secret = (
        settings.google_client_secret.get_secret_value() if settings.google_client_secret else ""
    )
    try:
        resp = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.google_client_id,
                "client_secret": client_secret,
                "redirect_uri": settings.google_redirect_uri or "",
                "grant_type": "authorization_code",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except (
        httpx.TimeoutException,
        httpx.ConnectError,
        httpx.RemoteProtocolError,
    ) as e:
        logger.warning("Google token exchange network error: %s", e, exc_info=True)
        raise AuthError("Google auth temporarily unavailable") from e
    if resp.status_code != 200:
        logger.warning("Google token exchange failed: %s %s", resp.status_code, resp.text)
        raise AuthError("Invalid or expired authorization code")

    try:
        return GoogleTokenResponse.model_validate(resp.json())
    except (ValidationError, ValueError) as e:
        raise AuthError("Invalid Google token response") from e


async def decode_google_id_token(
    id_token_str: str, key_fetcher: AsyncKeyFetcher
) -> dict[str, Any]:
    """구글 ID token 서명 검증 후 디코딩. key_fetcher는 lifespan 싱글톤(Depends)."""
    try:
        key_entry = await key_fetcher.get_key(id_token_str)
        return jwt.decode(
            jwt=id_token_str,
            audience=settings.google_client_id,
            options={"verify_exp": True, "verify_aud": True},
            **key_entry,
        )
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid id_token: %s", e)
        raise AuthError("Invalid id_token") from e


async def google_identity_from_code(
    code: str,
    *,
    http_client: httpx.AsyncClient,
    key_fetcher: AsyncKeyFetcher,
) -> OAuthIdentity:
    """
    1. code → 구글 토큰 교환
    2. id_token JWKS 검증
    3. sub·검증된 email 필수(누락 시 AuthError). 미검증 이메일로 기존 계정에 연결되는 것 방지.
    """
    token_data = await exchange_google_code(code, http_client)
    claims = await decode_google_id_token(token_data.id_token, key_fetcher)
    provider_user_id = str(claims.get("sub") or "").strip()
    if not provider_user_id:
        raise AuthError("Invalid id_token: missing sub")
    email = claims.get("email")
    if not email or claims.get("email_verified") is not True:
        raise AuthError("Google account email is not verified")
    return OAuthIdentity(
        provider_user_id=provider_user_id,
        email=email,
        full_name=(claims.get("name") or "").strip(),
    )
