"""FastAPI 앱 진입점. app.main:app"""

import asyncio
import logging
from contextlib import asynccontextmanager

from app.core.config import settings

# 환경 변수 로드 직후 Sentry 초기화. 임포트/라우터 등록 단계 예외도 수집.
def _init_sentry() -> None:
    """SENTRY_DSN이 있으면 Sentry 초기화. environment는 설정에서 로드(스테이징/로컬 구분)."""
    if settings.sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn.get_secret_value(),
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=0.1,
            environment=settings.environment,
        )


_init_sentry()

import httpx
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from pyjwt_key_fetcher import AsyncKeyFetcher

from app.api import health
from app.api.v1 import analytics as v1_analytics
from app.api.v1 import auth as v1_auth
from app.api.v1 import profiles as v1_profiles
from app.core.database import dispose_db, init_db, verify_db_connection
from app.core.exceptions import ServiceError
from app.core.redis import create_rate_limit_client

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 수명 주기: DB, HTTP 클라이언트·Google Key Fetcher(싱글톤), Redis(Rate limit)."""
    init_db()
    await verify_db_connection()
    app.state.httpx_client = httpx.AsyncClient(timeout=10.0)
    app.state.google_key_fetcher = AsyncKeyFetcher(
        valid_issuers=["https://accounts.google.com"],
    )
    app.state.redis_rate_limit_client = create_rate_limit_client()
    yield
    await app.state.httpx_client.aclose()
    if getattr(app.state, "redis_rate_limit_client", None) is not None:
        await app.state.redis_rate_limit_client.aclose()
    await dispose_db()


app = FastAPI(
    title="Smart Card API",
    description="QR 명함·프로필 공개 플랫폼 백엔드",
    version=API_VERSION,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(v1_auth.router, prefix="/api/v1")
app.include_router(v1_profiles.router, prefix="/api/v1")
app.include_router(v1_analytics.router, prefix="/api/v1")

# 업로드 디렉터리는 첫 저장 시 생성되므로 부팅 시 존재 여부를 검사하지 않음.
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["root"])
async def get_root() -> dict[str, str]:
    return {
        "message": "Smart QR Business Card Platform API",
        "version": API_VERSION,
        "docs": "/docs",
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await request_validation_exception_handler(request, exc)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """도메인 예외 → status_code + {"detail": message}. 5xx만 스택 로그."""
    if exc.status_code >= 500:
        logger.error("Service error: %s", exc.message, exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


@app.exception_handler(httpx.HTTPError)
async def httpx_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    """외부 HTTP 클라이언트(구글 OAuth 등) 지연/타임아웃 시 503. 500 전파 방지."""
    logger.warning("External HTTP error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """비즈니스 예외(HTTPException) → 그대로 반환. 그 외 → 500 + 로그."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc  # 정상 연결 종료, 500 로그 방지
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )
    logger.exception("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
