"""AI assistant tool webhooks, invoked by the assistant mid-call."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_gateway
from ..db.session import get_session
from ..schemas import tools as tools_schema
from ..services import tools as tools_service
from ..services.gateway import VoiceGateway

router = APIRouter()


@router.post("/send-sms", response_model=tools_schema.ToolResult)
async def send_sms(
    payload: tools_schema.SendSmsRequest,
    session: AsyncSession = Depends(get_session),
    gateway: VoiceGateway = Depends(get_gateway),
) -> tools_schema.ToolResult:
    """Text the caller an informational link."""

    return await tools_service.send_info_sms(payload, session, gateway)


@router.post("/transfer", response_model=tools_schema.ToolResult)
async def transfer(
    payload: tools_schema.TransferRequest,
    gateway: VoiceGateway = Depends(get_gateway),
) -> tools_schema.ToolResult:
    """Transfer the caller to a human agent."""

    return await tools_service.transfer_to_human(payload, gateway)


@router.post("/book-appointment", response_model=tools_schema.ToolResult)
async def book_appointment(payload: tools_schema.BookAppointmentRequest) -> tools_schema.ToolResult:
    """Record an appointment request."""

    return await tools_service.book_appointment(payload)
