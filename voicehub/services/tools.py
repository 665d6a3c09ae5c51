"""Business logic for AI assistant tool webhooks.

Every handler returns a ``ToolResult`` and never raises, so the assistant can
always narrate the outcome to the caller.
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import UpstreamGatewayError
from ..data.messages import render_message
from ..models.call import Call, CallDirection
from ..repositories import calls as calls_repo
from ..schemas import tools as schemas
from .gateway import VoiceGateway

logger = logging.getLogger(__name__)


async def send_info_sms(
    payload: schemas.SendSmsRequest,
    session: AsyncSession,
    gateway: VoiceGateway,
) -> schemas.ToolResult:
    """Text the customer an informational link chosen by the assistant."""

    message_type = payload.message_type or ""
    try:
        call = await _find_call(session, payload.call_control_id)
        to = _customer_number(call) if call is not None else None
        if not to:
            logger.error("SMS: no caller number found for call %s", payload.call_control_id)
            return schemas.ToolResult(success=False, message="No se encontró el número del llamante.")

        text = render_message(message_type, payload.custom_text)
        await gateway.send_message(to, text)
    except UpstreamGatewayError as exc:
        logger.error("SMS (%s) to call %s failed: %s", message_type, payload.call_control_id, exc.message)
        return schemas.ToolResult(success=False, message="Error al enviar el SMS.")
    except Exception:  # noqa: BLE001 - the assistant always needs a reply
        logger.exception("SMS tool failed for call %s", payload.call_control_id)
        return schemas.ToolResult(success=False, message="Error al enviar el SMS.")

    logger.info("Info SMS (%s) sent for call %s", message_type, payload.call_control_id)
    return schemas.ToolResult(success=True, message=f"SMS de {message_type} enviado exitosamente.")


async def transfer_to_human(
    payload: schemas.TransferRequest,
    gateway: VoiceGateway,
) -> schemas.ToolResult:
    """Hand the live call over to a human agent."""

    if not payload.call_control_id:
        return schemas.ToolResult(success=False, message="No se pudo identificar la llamada.")

    try:
        await gateway.transfer(payload.call_control_id, payload.to)
    except UpstreamGatewayError as exc:
        logger.error("Transfer of call %s failed: %s", payload.call_control_id, exc.message)
        return schemas.ToolResult(success=False, message="No fue posible transferir la llamada en este momento.")
    except Exception:  # noqa: BLE001 - the assistant always needs a reply
        logger.exception("Transfer tool failed for call %s", payload.call_control_id)
        return schemas.ToolResult(success=False, message="No fue posible transferir la llamada en este momento.")

    return schemas.ToolResult(success=True, message="Transfiriendo la llamada a un agente.")


async def book_appointment(payload: schemas.BookAppointmentRequest) -> schemas.ToolResult:
    """Acknowledge an appointment request captured by the assistant."""

    # Requests are only logged until a calendar integration exists.
    logger.info("Appointment request: %s", payload.model_dump(exclude_none=True))
    client_name = payload.client_name or "el cliente"
    service = payload.service or "servicio general"
    return schemas.ToolResult(success=True, message=f"Cita registrada para {client_name} - {service}")


async def _find_call(session: AsyncSession, call_control_id: str | None) -> Call | None:
    if not call_control_id:
        return None
    return await calls_repo.get_by_control_id(session, call_control_id)


def _customer_number(call: Call) -> str | None:
    """Return the number of the party talking to the assistant."""

    if call.direction is CallDirection.OUTBOUND:
        return call.to_number
    return call.from_number
