"""Pytest fixtures. Postgres 없이 인메모리 SQLite(aiosqlite)로 실행 가능하도록 환경 조정."""

import os

# CI에서 DATABASE_URL이 주입되면 그대로 사용. 로컬에서 비어 있으면 DB 없이 부팅 가능하도록 빈 문자열.
if not os.environ.get("DATABASE_URL"):
    os.environ["DATABASE_URL"] = ""
# Settings Fail-fast 대비: 테스트 시 필수 Auth env 설정(Access/Refresh 서로 다른 값)
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-for-pytest-0123456789")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-for-pytest-0123456789")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-google-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-google-client-secret")
os.environ.setdefault("GOOGLE_REDIRECT_URI", "http://test/api/v1/auth/google/callback")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.pop("REDIS_URL", None)

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import override_db_for_testing
from app.models import Base
from tests.helpers import bearer, register


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """QR·아바타 파일은 테스트별 임시 디렉터리에 저장."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture
def client() -> TestClient:
    """FastAPI TestClient. DB 없이 /health 등 테스트용."""
    from app.main import app

    override_db_for_testing(None)
    return TestClient(app)


@pytest_asyncio.fixture
async def db_engine():
    """인메모리 SQLite. 커넥션 하나를 공유(StaticPool)하고 FK CASCADE를 켠다."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    override_db_for_testing(engine)
    yield engine
    override_db_for_testing(None)
    await engine.dispose()


@pytest_asyncio.fixture
async def api_client(db_engine):
    """ASGITransport 기반 비동기 클라이언트. lifespan은 실행되지 않으므로 app.state는 비어 있음."""
    from app.main import app

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    for attr in ("redis_rate_limit_client", "httpx_client", "google_key_fetcher"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)


@pytest_asyncio.fixture
async def auth_headers(api_client) -> dict[str, str]:
    """가입 직후 Bearer 헤더. 쿠키 jar는 비워 헤더만으로 인증되게 함."""
    response = await register(api_client)
    assert response.status_code == 201
    api_client.cookies.clear()
    return bearer(response)
