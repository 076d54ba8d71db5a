"""환경 변수 기반 설정. pydantic-settings 사용."""

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """앱 설정. 환경변수에서 로드. 시크릿은 SecretStr로 마스킹, 필수 시크릿은 기본값 없음(Fail-fast)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    sentry_dsn: SecretStr | None = None
    environment: str = "development"  # production이면 Secure 쿠키 + 부팅 검사.

    database_url: str | None = None
    db_connect_retries: int = Field(5, ge=1, le=20)  # 연결 실패 시 재시도 횟수.
    db_connect_retry_interval_sec: float = Field(2.0, ge=0.5, le=60.0)  # 재시도 간격(초).

    # Auth (필수: 기본값 없음 → 부팅 시점 Fail-fast). Access/Refresh 서명 키는 반드시 분리.
    jwt_access_secret: SecretStr
    jwt_refresh_secret: SecretStr
    jwt_issuer: str = "smartcard"  # JWT iss 클레임 (발급자).
    jwt_audience: str = "smartcard-api"  # JWT aud 클레임 (대상).
    jwt_access_expire_seconds: int = Field(900, ge=60, le=86400)  # Access 토큰 만료(초). 기본 15분.
    jwt_refresh_expire_days: int = Field(7, ge=1, le=90)  # Refresh 토큰 만료(일).

    # Google OAuth (선택). 미설정 시 OAuth 엔드포인트는 에러 URL로 리다이렉트.
    google_client_id: str | None = None
    google_client_secret: SecretStr | None = None
    google_redirect_uri: str | None = None

    # 공개 프로필 URL·OAuth 리다이렉트 기준 주소. 예: https://card.example.com
    frontend_url: str = "http://localhost:5173"
    # CORS 허용 Origin(쉼표 구분). 비어 있으면 frontend_url 하나만 허용.
    allowed_origins: str = ""

    # 업로드(아바타·QR 이미지) 저장 루트. /uploads 로 정적 서빙.
    upload_dir: str = "uploads"
    avatar_max_bytes: int = Field(5 * 1024 * 1024, ge=1024)

    # Rate limit용 Redis (선택). 미설정 시 제한 비활성.
    redis_url: str | None = None
    redis_socket_timeout: float = Field(5.0, ge=1.0, le=60.0)
    redis_socket_connect_timeout: float = Field(2.0, ge=0.5, le=30.0)
    redis_max_connections: int = Field(20, ge=1, le=100)

    login_rate_limit: int = Field(20, ge=1)
    login_rate_window_seconds: int = Field(15 * 60, ge=1)
    register_rate_limit: int = Field(10, ge=1)
    register_rate_window_seconds: int = Field(60 * 60, ge=1)

    @property
    def is_production(self) -> bool:
        return (self.environment or "").strip().lower() == "production"

    @property
    def cookie_secure(self) -> bool:
        """프로덕션에서만 Secure 쿠키(로컬 http 개발 지원)."""
        return self.is_production

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return origins or [self.frontend_url]

    @property
    def google_oauth_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @model_validator(mode="after")
    def check_secrets(self: "Settings") -> "Settings":
        """Access/Refresh 서명 키 분리 확인. 프로덕션은 필수 변수 누락 시 부팅 거부(Fail-Fast)."""
        access = self.jwt_access_secret.get_secret_value()
        refresh = self.jwt_refresh_secret.get_secret_value()
        if access and access == refresh:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be different.")
        if not self.is_production:
            return self
        missing: list[str] = []
        if not (self.database_url or "").strip():
            missing.append("DATABASE_URL")
        if not access.strip():
            missing.append("JWT_ACCESS_SECRET")
        if not refresh.strip():
            missing.append("JWT_REFRESH_SECRET")
        if missing:
            raise ValueError(
                f"Production environment requires these variables to be set: {', '.join(missing)}. "
                "Set them in Secret Manager or environment before boot."
            )
        return self


settings = Settings()
