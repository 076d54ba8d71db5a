"""조회 추적·분석 스키마."""

import uuid

from pydantic import Field

from app.schemas.base import ApiModel


class TrackViewPayload(ApiModel):
    profile_id: uuid.UUID
    source: str = Field("DIRECT", min_length=1, max_length=32)
    referrer: str | None = None


class DailyViews(ApiModel):
    date: str
    views: int


class DeviceBreakdown(ApiModel):
    mobile: int
    desktop: int


class ReferrerCount(ApiModel):
    domain: str
    count: int


class AnalyticsResponse(ApiModel):
    total_views: int
    views_last7_days: int
    views_last30_days: int
    total_qr_scans: int = Field(..., alias="totalQRScans")
    qr_scans_last7_days: int
    views_by_source: dict[str, int]
    views_by_day: list[DailyViews]
    device_breakdown: DeviceBreakdown
    top_referrers: list[ReferrerCount]
