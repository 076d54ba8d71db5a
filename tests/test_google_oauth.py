"""Google OAuth 테스트. 구글 네트워크 호출 없이 mock으로 검증."""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.core.cookies import ACCESS_COOKIE
from app.core.database import transaction
from app.core.exceptions import AuthError
from app.main import app
from app.repositories.user_repository import get_by_email
from app.schemas.auth import GoogleTokenResponse, OAuthIdentity
from app.services.auth_service import (
    decode_google_id_token,
    exchange_google_code,
    google_identity_from_code,
    oauth_callback,
)
from tests.helpers import register

ERROR_URL = "http://frontend.test?error=authentication_failed"


@pytest.mark.asyncio
async def test_decode_google_id_token_valid() -> None:
    """decode_google_id_token: key_fetcher.get_key + jwt.decode mock 시 claims 반환."""
    mock_fetcher = AsyncMock()
    mock_fetcher.get_key = AsyncMock(return_value={"key": "dummy-key-for-test"})
    with patch(
        "app.services.auth_service.jwt.decode",
        return_value={"sub": "123", "email": "a@b.com", "name": "Test"},
    ):
        result = await decode_google_id_token("fake-id-token", mock_fetcher)
        assert result["sub"] == "123"
        assert result["email"] == "a@b.com"


@pytest.mark.asyncio
async def test_decode_google_id_token_invalid_raises() -> None:
    mock_fetcher = AsyncMock()
    mock_fetcher.get_key = AsyncMock(return_value={"key": "dummy-key-for-test"})
    with pytest.raises(AuthError):
        await decode_google_id_token("not-a-jwt", mock_fetcher)


@pytest.mark.asyncio
async def test_exchange_google_code_non_200_raises() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "bad"}))
    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(AuthError):
            await exchange_google_code("code", client)


@pytest.mark.asyncio
async def test_exchange_google_code_network_error_raises_auth_error() -> None:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_raise)) as client:
        with pytest.raises(AuthError):
            await exchange_google_code("code", client)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "g-1", "email": "a@b.com", "email_verified": False},
        {"sub": "g-1", "email": "a@b.com"},
        {"sub": "", "email": "a@b.com", "email_verified": True},
    ],
)
async def test_identity_requires_sub_and_verified_email(claims) -> None:
    with patch(
        "app.services.auth_service.exchange_google_code",
        new=AsyncMock(return_value=GoogleTokenResponse(id_token="t", access_token="a")),
    ), patch(
        "app.services.auth_service.decode_google_id_token", new=AsyncMock(return_value=claims)
    ):
        with pytest.raises(AuthError):
            await google_identity_from_code("code", http_client=AsyncMock(), key_fetcher=AsyncMock())


@pytest.mark.asyncio
async def test_oauth_callback_links_existing_email_account(api_client) -> None:
    await register(api_client, email="linked@example.com")
    tokens = await oauth_callback(
        OAuthIdentity(provider_user_id="g-42", email="Linked@Example.com", full_name="Linked")
    )
    assert tokens.access_token
    async with transaction() as session:
        user = await get_by_email(session, "linked@example.com")
    assert user.google_id == "g-42"
    assert user.password_hash is not None
    assert user.last_login_at is not None


@pytest.mark.asyncio
async def test_oauth_callback_creates_passwordless_user(db_engine) -> None:
    await oauth_callback(OAuthIdentity(provider_user_id="g-7", email="new@gmail.com", full_name=""))
    async with transaction() as session:
        user = await get_by_email(session, "new@gmail.com")
    assert user.password_hash is None
    assert user.full_name == "new"


@pytest.mark.asyncio
async def test_oauth_callback_without_identity_fails(db_engine) -> None:
    with pytest.raises(AuthError):
        await oauth_callback(None)


@pytest.mark.asyncio
async def test_google_login_redirects_with_state_cookie(api_client) -> None:
    response = await api_client.get("/api/v1/auth/google")
    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.netloc == "accounts.google.com"
    state = parse_qs(location.query)["state"][0]
    assert api_client.cookies.get("oauthState") == state


@pytest.mark.asyncio
async def test_google_callback_state_mismatch_redirects_to_error(api_client) -> None:
    await api_client.get("/api/v1/auth/google")
    response = await api_client.get(
        "/api/v1/auth/google/callback", params={"code": "abc", "state": "forged"}
    )
    assert response.status_code == 302
    assert response.headers["location"] == ERROR_URL


@pytest.mark.asyncio
async def test_google_callback_success_sets_cookies(api_client) -> None:
    app.state.httpx_client = AsyncMock()
    app.state.google_key_fetcher = AsyncMock()
    await api_client.get("/api/v1/auth/google")
    state = api_client.cookies.get("oauthState")

    identity = OAuthIdentity(provider_user_id="g-9", email="oauth@gmail.com", full_name="OAuth")
    with patch(
        "app.api.v1.auth.google_identity_from_code", new=AsyncMock(return_value=identity)
    ):
        response = await api_client.get(
            "/api/v1/auth/google/callback", params={"code": "abc", "state": state}
        )
    assert response.status_code == 302
    assert response.headers["location"] == "http://frontend.test/dashboard"
    assert api_client.cookies.get(ACCESS_COOKIE)


@pytest.mark.asyncio
async def test_google_callback_idp_failure_redirects_to_error(api_client) -> None:
    app.state.httpx_client = AsyncMock()
    app.state.google_key_fetcher = AsyncMock()
    await api_client.get("/api/v1/auth/google")
    state = api_client.cookies.get("oauthState")

    with patch(
        "app.api.v1.auth.google_identity_from_code",
        new=AsyncMock(side_effect=AuthError("Invalid id_token")),
    ):
        response = await api_client.get(
            "/api/v1/auth/google/callback", params={"code": "abc", "state": state}
        )
    assert response.headers["location"] == ERROR_URL
