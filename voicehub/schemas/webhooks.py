"""Schemas for provider webhook envelopes."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    event_type: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict, description="Event-specific body")


class WebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: WebhookEvent | None = None


class WebhookAck(BaseModel):
    received: bool = True
