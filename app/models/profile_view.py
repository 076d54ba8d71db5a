"""ProfileView 모델. append-only 조회 이벤트. 프로필 삭제 시 CASCADE."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.profile import Profile

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, utcnow

# 저장 전 잘라내는 최대 길이. IPv6 텍스트 최대 45자.
IP_ADDRESS_MAX_LENGTH = 45
USER_AGENT_MAX_LENGTH = 255
REFERRER_MAX_LENGTH = 255


class ProfileView(Base):
    """source: DIRECT, QR_SCAN, LINK 등(대문자 저장)."""

    __tablename__ = "profile_views"
    __table_args__ = (Index("ix_profile_views_profile_timestamp", "profile_id", "timestamp"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    source: Mapped[str] = mapped_column(String(32), nullable=False, default="DIRECT")
    ip_address: Mapped[str | None] = mapped_column(String(IP_ADDRESS_MAX_LENGTH), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(USER_AGENT_MAX_LENGTH), nullable=True)
    referrer: Mapped[str | None] = mapped_column(String(REFERRER_MAX_LENGTH), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    profile: Mapped["Profile"] = relationship("Profile", back_populates="views")
