"""Profile(디지털 명함) 모델. 슬러그로 공개, 소유자만 수정."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.profile_view import ProfileView
    from app.models.social_link import SocialLink
    from app.models.user import User
    from app.models.work_experience import WorkExperience

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, utcnow


class Profile(Base):
    """유저 1명 → 프로필 N개. 자식(경력·소셜 링크·조회 로그)은 DB 레벨 CASCADE로 함께 삭제."""

    __tablename__ = "profiles"
    __table_args__ = (UniqueConstraint("slug", name="uq_profiles_slug"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str] = mapped_column(String(256), nullable=False)
    title: Mapped[str | None] = mapped_column(String(256), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    qr_code_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    profile_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="profiles")
    experiences: Mapped[list["WorkExperience"]] = relationship(
        "WorkExperience",
        back_populates="profile",
        order_by="WorkExperience.display_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    social_links: Mapped[list["SocialLink"]] = relationship(
        "SocialLink",
        back_populates="profile",
        order_by="SocialLink.display_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    views: Mapped[list["ProfileView"]] = relationship(
        "ProfileView", back_populates="profile", passive_deletes=True
    )
