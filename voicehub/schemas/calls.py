"""Schemas for the call query API."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from ..core.timeutils import ensure_utc
from ..models.call import CallDirection, CallStatus

UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class CallOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    call_control_id: str
    call_leg_id: str | None = None
    direction: CallDirection
    from_number: str | None = None
    to_number: str | None = None
    status: CallStatus
    started_at: UTCDateTime | None = None
    answered_at: UTCDateTime | None = None
    ended_at: UTCDateTime | None = None
    duration_seconds: int = 0
    hangup_cause: str | None = None
    created_at: UTCDateTime | None = None


class TranscriptTurnOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    call_id: str
    role: str
    content: str
    timestamp: UTCDateTime


class InsightOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    call_id: str
    summary: str | None = None
    sentiment: str | None = None
    action_items: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    outcome: str
    raw_payload: dict[str, Any] = Field(default_factory=dict)
    created_at: UTCDateTime | None = None


class CallDetail(CallOut):
    transcription: list[TranscriptTurnOut] = Field(default_factory=list)
    insight: InsightOut | None = None


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int


class CallListResponse(BaseModel):
    data: list[CallOut]
    pagination: Pagination


class RecentCallsResponse(BaseModel):
    data: list[CallOut]


class CallDetailResponse(BaseModel):
    data: CallDetail


class OutboundCallRequest(BaseModel):
    to: str | None = None


class ProviderResponse(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)
