"""Query API for calls and reporting."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_gateway
from ..db.session import get_session
from ..models.call import CallDirection, CallStatus
from ..schemas import calls as calls_schema
from ..schemas import stats as stats_schema
from ..services import calls as calls_service
from ..services import stats as stats_service
from ..services.gateway import VoiceGateway

router = APIRouter()


@router.get("/calls", response_model=calls_schema.CallListResponse)
async def list_calls(
    direction: CallDirection | None = None,
    status: CallStatus | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> calls_schema.CallListResponse:
    """Return paginated calls, newest first."""

    return await calls_service.list_calls(
        session,
        direction=direction,
        status=status,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
        offset=offset,
    )


@router.get("/calls/recent", response_model=calls_schema.RecentCallsResponse)
async def recent_calls(
    limit: int = Query(default=20, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
) -> calls_schema.RecentCallsResponse:
    """Return the latest calls."""

    return await calls_service.recent_calls(session, limit)


@router.post("/calls/outbound", response_model=calls_schema.ProviderResponse)
async def outbound_call(
    payload: calls_schema.OutboundCallRequest,
    gateway: VoiceGateway = Depends(get_gateway),
) -> calls_schema.ProviderResponse:
    """Dial a number through the provider."""

    result = await calls_service.place_outbound_call(payload, gateway)
    return calls_schema.ProviderResponse(data=result)


@router.get("/calls/{call_control_id}", response_model=calls_schema.CallDetailResponse)
async def get_call(
    call_control_id: str,
    session: AsyncSession = Depends(get_session),
) -> calls_schema.CallDetailResponse:
    """Return a call with its transcript and insight."""

    return await calls_service.get_call_detail(session, call_control_id)


@router.post("/calls/{call_control_id}/hangup", response_model=calls_schema.ProviderResponse)
async def hangup_call(
    call_control_id: str,
    session: AsyncSession = Depends(get_session),
    gateway: VoiceGateway = Depends(get_gateway),
) -> calls_schema.ProviderResponse:
    """Hang up a live call."""

    result = await calls_service.hangup_call(session, call_control_id, gateway)
    return calls_schema.ProviderResponse(data=result)


@router.get("/stats/today", response_model=stats_schema.StatsResponse)
async def stats_today(session: AsyncSession = Depends(get_session)) -> stats_schema.StatsResponse:
    """Return dashboard figures for the current UTC day."""

    return stats_schema.StatsResponse(data=await stats_service.summary_for_today(session))


@router.get("/stats/range", response_model=stats_schema.StatsResponse)
async def stats_range(
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    session: AsyncSession = Depends(get_session),
) -> stats_schema.StatsResponse:
    """Return dashboard figures for an explicit window."""

    return stats_schema.StatsResponse(data=await stats_service.summary_for_range(session, from_date, to_date))
