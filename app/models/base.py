"""SQLAlchemy Declarative Base."""

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """컬럼 default용 현재 시각(UTC, tz-aware)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """공통 베이스 클래스."""

    pass
