"""Analytics Service. 공개 프로필 조회 기록과 소유자용 집계·CSV 내보내기.

집계는 리포팅 쿼리. 프로필의 조회 이벤트 전체를 한 번 읽어 메모리에서 계산한다.
"""

import csv
import io
import logging
import uuid
from collections import Counter
from datetime import UTC, date, datetime, timedelta
from urllib.parse import urlparse

from app.core.database import transaction
from app.core.exceptions import NotFoundError
from app.models.profile_view import (
    IP_ADDRESS_MAX_LENGTH,
    REFERRER_MAX_LENGTH,
    USER_AGENT_MAX_LENGTH,
    ProfileView,
)
from app.repositories import profile_repository, profile_view_repository
from app.schemas.analytics import (
    AnalyticsResponse,
    DailyViews,
    DeviceBreakdown,
    ReferrerCount,
)

logger = logging.getLogger(__name__)

QR_SOURCE = "QR_SCAN"
DAILY_WINDOW_DAYS = 30
TOP_REFERRER_LIMIT = 10
CSV_HEADER = ("Timestamp", "Source", "Referrer", "Device Type")
_MOBILE_MARKERS = ("mobile", "android")


def _truncate(value: str | None, max_length: int) -> str | None:
    if not value:
        return None
    return value[:max_length]


def _as_utc(value: datetime) -> datetime:
    """SQLite는 tz 정보 없이 돌려줌. naive 값은 UTC로 간주."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def device_type(user_agent: str | None) -> str:
    ua = (user_agent or "").lower()
    return "mobile" if any(marker in ua for marker in _MOBILE_MARKERS) else "desktop"


def referrer_domain(referrer: str | None) -> str | None:
    """리퍼러 URL의 호스트. 비었거나 'direct'면 None, 파싱 불가면 원문 그대로."""
    if not referrer or referrer.strip().lower() == "direct":
        return None
    try:
        parsed = urlparse(referrer if "://" in referrer else f"//{referrer}")
        return parsed.hostname or None
    except ValueError:
        return referrer


async def track_view(
    profile_id: uuid.UUID,
    *,
    source: str,
    referrer: str | None,
    ip_address: str | None,
    user_agent: str | None,
) -> None:
    """발행된 프로필에만 기록. 없거나 미발행이면 404."""
    async with transaction() as session:
        profile = await profile_repository.get_published(session, profile_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        await profile_view_repository.add_view(
            session,
            profile_id=profile_id,
            source=(source or "DIRECT").upper(),
            ip_address=_truncate(ip_address, IP_ADDRESS_MAX_LENGTH),
            user_agent=_truncate(user_agent, USER_AGENT_MAX_LENGTH),
            referrer=_truncate(referrer, REFERRER_MAX_LENGTH),
        )


async def _owned_views(user_id: uuid.UUID, profile_id: uuid.UUID) -> tuple[str, list[ProfileView]]:
    async with transaction() as session:
        profile = await profile_repository.get_owned(session, profile_id, user_id)
        if profile is None:
            raise NotFoundError("Profile not found or unauthorized")
        views = await profile_view_repository.list_views(session, profile_id)
        return profile.slug, views


def summarize(views: list[ProfileView], now: datetime | None = None) -> AnalyticsResponse:
    """조회 이벤트 목록 → 집계. viewsByDay는 오늘 포함 최근 30일(UTC), 조회 없는 날은 0, 오래된 날부터."""
    now = _as_utc(now or datetime.now(UTC))
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    today = now.date()
    first_day = today - timedelta(days=DAILY_WINDOW_DAYS - 1)
    per_day: dict[date, int] = {first_day + timedelta(days=i): 0 for i in range(DAILY_WINDOW_DAYS)}

    by_source: Counter[str] = Counter()
    referrers: Counter[str] = Counter()
    devices = {"mobile": 0, "desktop": 0}
    last_7 = last_30 = qr_total = qr_last_7 = 0

    for view in views:
        ts = _as_utc(view.timestamp)
        by_source[view.source] += 1
        devices[device_type(view.user_agent)] += 1
        if ts >= week_ago:
            last_7 += 1
        if ts >= month_ago:
            last_30 += 1
        if view.source == QR_SOURCE:
            qr_total += 1
            if ts >= week_ago:
                qr_last_7 += 1
        if ts.date() in per_day:
            per_day[ts.date()] += 1
        domain = referrer_domain(view.referrer)
        if domain:
            referrers[domain] += 1

    return AnalyticsResponse(
        total_views=len(views),
        views_last7_days=last_7,
        views_last30_days=last_30,
        total_qr_scans=qr_total,
        qr_scans_last7_days=qr_last_7,
        views_by_source=dict(by_source),
        views_by_day=[DailyViews(date=day.isoformat(), views=count) for day, count in per_day.items()],
        device_breakdown=DeviceBreakdown(**devices),
        top_referrers=[
            ReferrerCount(domain=domain, count=count)
            for domain, count in referrers.most_common(TOP_REFERRER_LIMIT)
        ],
    )


async def get_analytics(user_id: uuid.UUID, profile_id: uuid.UUID) -> AnalyticsResponse:
    _, views = await _owned_views(user_id, profile_id)
    return summarize(views)


async def export_csv(user_id: uuid.UUID, profile_id: uuid.UUID) -> tuple[str, str]:
    """(파일명, CSV 본문). 행은 최신순."""
    slug, views = await _owned_views(user_id, profile_id)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for view in views:
        writer.writerow(
            (
                _as_utc(view.timestamp).isoformat(),
                view.source,
                view.referrer or "Direct",
                device_type(view.user_agent).capitalize(),
            )
        )
    filename = f"{slug}-analytics-{datetime.now(UTC).date().isoformat()}.csv"
    logger.info("Analytics export: profile_id=%s rows=%d", profile_id, len(views))
    return filename, buffer.getvalue()
