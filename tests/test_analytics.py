"""조회 추적·집계·CSV 내보내기 테스트."""

import csv
import io
import uuid
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from app.services.analytics_service import device_type, referrer_domain, summarize
from tests.helpers import bearer, register

PROFILE_BODY = {"fullName": "Jane Roe", "email": "jane@example.com"}
MOBILE_UA = "Mozilla/5.0 (Linux; Android 14) Mobile Safari/537.36"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"


def _view(source: str, *, days_ago: float = 0, ua: str | None = None, referrer: str | None = None):
    ts = datetime(2026, 3, 31, 12, 0, tzinfo=UTC) - timedelta(days=days_ago)
    return SimpleNamespace(source=source, timestamp=ts, user_agent=ua, referrer=referrer)


def test_device_type_detects_mobile_and_android() -> None:
    assert device_type(MOBILE_UA) == "mobile"
    assert device_type("Dalvik/2.1.0 (Linux; U; Android 9)") == "mobile"
    assert device_type(DESKTOP_UA) == "desktop"
    assert device_type(None) == "desktop"


def test_referrer_domain() -> None:
    assert referrer_domain("https://www.linkedin.com/feed/") == "www.linkedin.com"
    assert referrer_domain("direct") is None
    assert referrer_domain("") is None
    assert referrer_domain("t.co/abc") == "t.co"


def test_summarize_counts_windows_sources_and_days() -> None:
    now = datetime(2026, 3, 31, 12, 0, tzinfo=UTC)
    views = [
        _view("QR_SCAN", days_ago=1, ua=MOBILE_UA),
        _view("QR_SCAN", days_ago=10, ua=DESKTOP_UA, referrer="https://google.com/search"),
        _view("DIRECT", days_ago=0, referrer="direct"),
        _view("LINK", days_ago=40, referrer="https://google.com/"),
    ]
    # SQLite처럼 tz 없는 값도 UTC로 처리
    views.append(
        SimpleNamespace(
            source="DIRECT",
            timestamp=datetime(2026, 3, 30, 8, 0),
            user_agent=None,
            referrer=None,
        )
    )

    result = summarize(views, now=now)

    assert result.total_views == 5
    assert result.views_last7_days == 3
    assert result.views_last30_days == 4
    assert result.total_qr_scans == 2
    assert result.qr_scans_last7_days == 1
    assert result.views_by_source == {"QR_SCAN": 2, "DIRECT": 2, "LINK": 1}
    assert result.device_breakdown.mobile == 1
    assert result.device_breakdown.desktop == 4
    assert [(r.domain, r.count) for r in result.top_referrers] == [("google.com", 2)]

    assert len(result.views_by_day) == 30
    assert result.views_by_day[0].date == "2026-03-02"
    assert result.views_by_day[-1].date == "2026-03-31"
    assert result.views_by_day[-1].views == 1
    assert result.views_by_day[-2].views == 2
    assert sum(day.views for day in result.views_by_day) == 4


def test_summarize_serializes_camel_case_keys() -> None:
    data = summarize([], now=datetime(2026, 3, 31, tzinfo=UTC)).model_dump(by_alias=True)
    assert {"totalViews", "viewsLast7Days", "totalQRScans", "qrScansLast7Days", "viewsByDay"} <= set(data)
    assert all(day["views"] == 0 for day in data["viewsByDay"])


async def _create_profile(api_client, headers) -> str:
    created = await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=headers)
    assert created.status_code == 201
    return created.json()["profile"]["id"]


@pytest.mark.asyncio
async def test_track_view_and_fetch_analytics(api_client, auth_headers) -> None:
    profile_id = await _create_profile(api_client, auth_headers)

    tracked = await api_client.post(
        "/api/v1/analytics/track-view",
        json={"profileId": profile_id, "source": "qr_scan"},
        headers={"User-Agent": MOBILE_UA, "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
    )
    assert tracked.status_code == 200
    assert tracked.json()["message"] == "View tracked successfully"
    await api_client.post(
        "/api/v1/analytics/track-view",
        json={"profileId": profile_id, "referrer": "https://news.ycombinator.com/item?id=1"},
        headers={"User-Agent": DESKTOP_UA},
    )

    response = await api_client.get(
        f"/api/v1/analytics/profiles/{profile_id}/analytics", headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["totalViews"] == 2
    assert data["totalQRScans"] == 1
    assert data["viewsBySource"] == {"QR_SCAN": 1, "DIRECT": 1}
    assert data["deviceBreakdown"] == {"mobile": 1, "desktop": 1}
    assert data["topReferrers"] == [{"domain": "news.ycombinator.com", "count": 1}]
    assert data["viewsByDay"][-1]["views"] == 2


@pytest.mark.asyncio
async def test_track_view_unknown_or_unpublished_is_404(api_client, auth_headers) -> None:
    missing = await api_client.post(
        "/api/v1/analytics/track-view", json={"profileId": str(uuid.uuid4())}
    )
    assert missing.status_code == 404

    profile_id = await _create_profile(api_client, auth_headers)
    await api_client.put(
        f"/api/v1/profiles/{profile_id}", json={"isPublished": False}, headers=auth_headers
    )
    unpublished = await api_client.post(
        "/api/v1/analytics/track-view", json={"profileId": profile_id}
    )
    assert unpublished.status_code == 404


@pytest.mark.asyncio
async def test_analytics_is_owner_only(api_client, auth_headers) -> None:
    profile_id = await _create_profile(api_client, auth_headers)
    other = bearer(await register(api_client, email="other@example.com"))
    api_client.cookies.clear()
    response = await api_client.get(
        f"/api/v1/analytics/profiles/{profile_id}/analytics", headers=other
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_export_csv(api_client, auth_headers) -> None:
    profile_id = await _create_profile(api_client, auth_headers)
    await api_client.post(
        "/api/v1/analytics/track-view",
        json={"profileId": profile_id, "source": "QR_SCAN"},
        headers={"User-Agent": MOBILE_UA},
    )

    response = await api_client.get(
        f"/api/v1/analytics/profiles/{profile_id}/analytics/export", headers=auth_headers
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    today = datetime.now(UTC).date().isoformat()
    assert f'filename="jane-roe-analytics-{today}.csv"' in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Timestamp", "Source", "Referrer", "Device Type"]
    assert rows[1][1:] == ["QR_SCAN", "Direct", "Mobile"]


def test_referrer_domain_malformed_url_falls_back_to_raw() -> None:
    assert referrer_domain("http://[oops") == "http://[oops"


@pytest.mark.asyncio
async def test_malformed_referrer_does_not_break_analytics(api_client, auth_headers) -> None:
    profile_id = await _create_profile(api_client, auth_headers)
    tracked = await api_client.post(
        "/api/v1/analytics/track-view",
        json={"profileId": profile_id, "referrer": "http://[oops"},
    )
    assert tracked.status_code == 200

    response = await api_client.get(
        f"/api/v1/analytics/profiles/{profile_id}/analytics", headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["topReferrers"] == [{"domain": "http://[oops", "count": 1}]


@pytest.mark.asyncio
async def test_analytics_with_non_uuid_id_is_404(api_client, auth_headers) -> None:
    response = await api_client.get(
        "/api/v1/analytics/profiles/not-a-uuid/analytics", headers=auth_headers
    )
    assert response.status_code == 404
