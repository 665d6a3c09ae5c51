"""Schemas for AI assistant tool webhooks."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SendSmsRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    call_control_id: str | None = None
    message_type: str | None = None
    custom_text: str | None = None


class TransferRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    call_control_id: str | None = None
    to: str | None = Field(default=None, description="Override for the configured transfer line")


class BookAppointmentRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    call_control_id: str | None = None
    client_name: str | None = None
    service: str | None = None
    preferred_time: str | None = None


class ToolResult(BaseModel):
    success: bool
    message: str
