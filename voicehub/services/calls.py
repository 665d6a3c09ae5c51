"""Query-side call operations and operator-initiated call actions."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError, ValidationError
from ..core.timeutils import ensure_utc
from ..models.call import CallDirection, CallStatus
from ..repositories import calls as calls_repo
from ..repositories import insights as insights_repo
from ..repositories import transcripts as transcripts_repo
from ..schemas import calls as schemas
from .gateway import VoiceGateway


async def list_calls(
    session: AsyncSession,
    *,
    direction: CallDirection | None = None,
    status: CallStatus | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    limit: int = 50,
    offset: int = 0,
) -> schemas.CallListResponse:
    """Return a filtered page of calls, newest first, with the unpaginated total."""

    filters = calls_repo.CallFilters(
        direction=direction,
        status=status,
        from_date=ensure_utc(from_date) if from_date else None,
        to_date=ensure_utc(to_date) if to_date else None,
        limit=limit,
        offset=offset,
    )
    rows, total = await calls_repo.query_calls(session, filters)
    return schemas.CallListResponse(
        data=[schemas.CallOut.model_validate(row) for row in rows],
        pagination=schemas.Pagination(total=total, limit=limit, offset=offset),
    )


async def recent_calls(session: AsyncSession, limit: int = 20) -> schemas.RecentCallsResponse:
    rows = await calls_repo.list_recent(session, limit)
    return schemas.RecentCallsResponse(data=[schemas.CallOut.model_validate(row) for row in rows])


async def get_call_detail(session: AsyncSession, call_control_id: str) -> schemas.CallDetailResponse:
    """Return one call joined with its transcript and insight."""

    call = await calls_repo.get_by_control_id(session, call_control_id)
    if call is None:
        raise NotFoundError("Call not found")

    turns = await transcripts_repo.list_by_call(session, call.id)
    insight = await insights_repo.get_by_call(session, call.id)

    detail = schemas.CallDetail(
        **schemas.CallOut.model_validate(call).model_dump(),
        transcription=[schemas.TranscriptTurnOut.model_validate(turn) for turn in turns],
        insight=schemas.InsightOut.model_validate(insight) if insight is not None else None,
    )
    return schemas.CallDetailResponse(data=detail)


async def place_outbound_call(payload: schemas.OutboundCallRequest, gateway: VoiceGateway) -> dict[str, Any]:
    """Ask the provider to dial a number; its events arrive on the voice webhook."""

    to = (payload.to or "").strip()
    if not to:
        raise ValidationError('Missing "to" phone number')
    return await gateway.dial(to)


async def hangup_call(session: AsyncSession, call_control_id: str, gateway: VoiceGateway) -> dict[str, Any]:
    """Hang up a known call through the provider."""

    call = await calls_repo.get_by_control_id(session, call_control_id)
    if call is None:
        raise NotFoundError("Call not found")
    return await gateway.hangup(call_control_id)
