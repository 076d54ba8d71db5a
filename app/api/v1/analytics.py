"""Analytics API. 공개 조회 추적 + 소유자용 집계·CSV 내보내기."""

import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from app.core.deps import client_ip, get_current_user, owned_profile_id
from app.schemas.analytics import AnalyticsResponse, TrackViewPayload
from app.schemas.auth import CurrentUser, MessageResponse
from app.services import analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/track-view", response_model=MessageResponse)
async def post_track_view(payload: TrackViewPayload, request: Request) -> MessageResponse:
    await analytics_service.track_view(
        payload.profile_id,
        source=payload.source,
        referrer=payload.referrer,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return MessageResponse(message="View tracked successfully")


@router.get("/profiles/{profile_id}/analytics", response_model=AnalyticsResponse)
async def get_profile_analytics(
    current_user: CurrentUser = Depends(get_current_user),
    profile_id: uuid.UUID = Depends(owned_profile_id),
) -> AnalyticsResponse:
    return await analytics_service.get_analytics(uuid.UUID(current_user.id), profile_id)


@router.get("/profiles/{profile_id}/analytics/export")
async def get_analytics_export(
    current_user: CurrentUser = Depends(get_current_user),
    profile_id: uuid.UUID = Depends(owned_profile_id),
) -> Response:
    filename, body = await analytics_service.export_csv(uuid.UUID(current_user.id), profile_id)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
