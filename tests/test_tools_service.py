"""Service-level tests for assistant tool webhooks."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from voicehub.data.messages import DEFAULT_MESSAGE, MESSAGE_TEMPLATES
from voicehub.models import CallDirection
from voicehub.repositories import calls as calls_repo
from voicehub.schemas import tools as schemas
from voicehub.services import tools as tools_service


def _call(direction: CallDirection = CallDirection.INBOUND) -> SimpleNamespace:
    return SimpleNamespace(
        call_control_id="cc-1",
        direction=direction,
        from_number="+17875550100",
        to_number="+17875550199",
    )


@pytest.mark.asyncio
async def test_send_info_sms_texts_inbound_caller(monkeypatch, gateway):
    monkeypatch.setattr(calls_repo, "get_by_control_id", AsyncMock(return_value=_call()))

    payload = schemas.SendSmsRequest(call_control_id="cc-1", message_type="prices")
    result = await tools_service.send_info_sms(payload, AsyncMock(), gateway)

    assert result.success is True
    assert "prices" in result.message
    assert gateway.named("send_message") == [
        ("send_message", "+17875550100", MESSAGE_TEMPLATES["prices"].text)
    ]


@pytest.mark.asyncio
async def test_send_info_sms_texts_outbound_callee(monkeypatch, gateway):
    monkeypatch.setattr(
        calls_repo, "get_by_control_id", AsyncMock(return_value=_call(CallDirection.OUTBOUND))
    )

    payload = schemas.SendSmsRequest(call_control_id="cc-1", message_type="location")
    await tools_service.send_info_sms(payload, AsyncMock(), gateway)

    assert gateway.named("send_message")[0][1] == "+17875550199"


@pytest.mark.asyncio
async def test_send_info_sms_product_uses_custom_text(monkeypatch, gateway):
    monkeypatch.setattr(calls_repo, "get_by_control_id", AsyncMock(return_value=_call()))

    payload = schemas.SendSmsRequest(call_control_id="cc-1", message_type="product", custom_text="Vitamina D3")
    await tools_service.send_info_sms(payload, AsyncMock(), gateway)

    assert gateway.named("send_message")[0][2].endswith("Vitamina D3")


@pytest.mark.asyncio
async def test_send_info_sms_unknown_type_falls_back(monkeypatch, gateway):
    monkeypatch.setattr(calls_repo, "get_by_control_id", AsyncMock(return_value=_call()))

    payload = schemas.SendSmsRequest(call_control_id="cc-1", message_type="weather")
    await tools_service.send_info_sms(payload, AsyncMock(), gateway)

    assert gateway.named("send_message")[0][2] == DEFAULT_MESSAGE


@pytest.mark.asyncio
async def test_send_info_sms_unknown_call(monkeypatch, gateway):
    monkeypatch.setattr(calls_repo, "get_by_control_id", AsyncMock(return_value=None))

    payload = schemas.SendSmsRequest(call_control_id="missing", message_type="prices")
    result = await tools_service.send_info_sms(payload, AsyncMock(), gateway)

    assert result.success is False
    assert gateway.actions == []


@pytest.mark.asyncio
async def test_send_info_sms_gateway_failure(monkeypatch, gateway):
    monkeypatch.setattr(calls_repo, "get_by_control_id", AsyncMock(return_value=_call()))
    gateway.failing.add("send_message")

    payload = schemas.SendSmsRequest(call_control_id="cc-1", message_type="appointment")
    result = await tools_service.send_info_sms(payload, AsyncMock(), gateway)

    assert result.success is False
    assert result.message == "Error al enviar el SMS."


@pytest.mark.asyncio
async def test_send_info_sms_lookup_failure_is_contained(monkeypatch, gateway):
    monkeypatch.setattr(calls_repo, "get_by_control_id", AsyncMock(side_effect=RuntimeError("db down")))

    payload = schemas.SendSmsRequest(call_control_id="cc-1", message_type="appointment")
    result = await tools_service.send_info_sms(payload, AsyncMock(), gateway)

    assert result.success is False


@pytest.mark.asyncio
async def test_transfer_to_human(gateway):
    result = await tools_service.transfer_to_human(schemas.TransferRequest(call_control_id="cc-1"), gateway)

    assert result.success is True
    assert gateway.named("transfer") == [("transfer", "cc-1", None)]


@pytest.mark.asyncio
async def test_transfer_failure_reports_to_assistant(gateway):
    gateway.failing.add("transfer")

    result = await tools_service.transfer_to_human(schemas.TransferRequest(call_control_id="cc-1"), gateway)

    assert result.success is False


@pytest.mark.asyncio
async def test_transfer_requires_call_id(gateway):
    result = await tools_service.transfer_to_human(schemas.TransferRequest(), gateway)

    assert result.success is False
    assert gateway.actions == []


@pytest.mark.asyncio
async def test_book_appointment_acknowledges():
    payload = schemas.BookAppointmentRequest(client_name="Ana", service="Evaluación")

    result = await tools_service.book_appointment(payload)

    assert result.success is True
    assert "Ana" in result.message
    assert "Evaluación" in result.message
