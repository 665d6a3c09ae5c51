"""Client for the voice provider's call-control and messaging API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.config import Settings
from ..core.exceptions import UpstreamGatewayError
from ..data.messages import MESSAGE_TYPES

logger = logging.getLogger(__name__)

SEND_SMS_TOOL = "send_info_sms"
TRANSFER_TOOL = "transfer_to_human"


class VoiceGateway:
    """One-shot request/response wrapper over the provider's REST API.

    Every method raises ``UpstreamGatewayError`` on a non-2xx response or a
    transport failure. Nothing is retried here.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.telnyx_api_base.rstrip("/"),
            headers={
                "Authorization": f"Bearer {settings.telnyx_api_key}",
                "Content-Type": "application/json",
            },
            timeout=settings.gateway_timeout_seconds,
            transport=transport,
        )

    async def answer(self, call_control_id: str) -> dict[str, Any]:
        """Answer a ringing inbound call."""

        return await self._post(f"/calls/{call_control_id}/actions/answer", {})

    async def start_ai_assistant(self, call_control_id: str) -> dict[str, Any]:
        """Attach the configured AI assistant, with its tools, to an answered call."""

        body = {
            "assistant": {"id": self._settings.ai_assistant_id},
            "tools": self.assistant_tools(),
        }
        data = await self._post(f"/calls/{call_control_id}/actions/ai_assistant_start", body)
        logger.info("AI assistant started on call %s", call_control_id)
        return data

    async def transfer(self, call_control_id: str, to: str | None = None) -> dict[str, Any]:
        """Transfer a call, by default to the configured human line."""

        destination = to or self._settings.transfer_number
        if not destination:
            raise UpstreamGatewayError("No transfer destination configured")
        data = await self._post(f"/calls/{call_control_id}/actions/transfer", {"to": destination})
        logger.info("Call %s transferred to %s", call_control_id, destination)
        return data

    async def hangup(self, call_control_id: str) -> dict[str, Any]:
        """Hang up a call."""

        data = await self._post(f"/calls/{call_control_id}/actions/hangup", {})
        logger.info("Call %s hung up", call_control_id)
        return data

    async def send_message(self, to: str, text: str) -> dict[str, Any]:
        """Send an SMS from the configured number."""

        body: dict[str, Any] = {"from": self._settings.telnyx_phone_number, "to": to, "text": text}
        if self._settings.telnyx_messaging_profile_id:
            body["messaging_profile_id"] = self._settings.telnyx_messaging_profile_id
        data = await self._post("/messages", body)
        logger.info("SMS sent to %s", to)
        return data

    async def dial(self, to: str, webhook_url: str | None = None) -> dict[str, Any]:
        """Place an outbound call whose lifecycle events come back to our webhook."""

        body = {
            "connection_id": self._settings.telnyx_connection_id,
            "from": self._settings.telnyx_phone_number,
            "to": to,
            "webhook_url": webhook_url or self._url("/webhooks/voice"),
        }
        data = await self._post("/calls", body)
        logger.info("Outbound call initiated to %s", to)
        return data.get("data", data)

    def assistant_tools(self) -> list[dict[str, Any]]:
        """Return the webhook tools declared to the assistant when a session starts."""

        return [
            {
                "type": "webhook",
                "function": {
                    "name": SEND_SMS_TOOL,
                    "description": (
                        "Envía un mensaje de texto SMS al cliente con un enlace relevante. Usa esta "
                        "herramienta cuando el cliente pregunte por ubicación, citas, productos, "
                        "pérdida de peso o precios."
                    ),
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "message_type": {
                                "type": "string",
                                "enum": list(MESSAGE_TYPES),
                                "description": "Tipo de información a enviar por SMS",
                            },
                            "custom_text": {
                                "type": "string",
                                "description": "Texto adicional opcional para incluir en el SMS",
                            },
                        },
                        "required": ["message_type"],
                    },
                },
                "webhook": {"url": self._url("/webhooks/tools/send-sms")},
            },
            {
                "type": "webhook",
                "function": {
                    "name": TRANSFER_TOOL,
                    "description": (
                        "Transfiere la llamada a un agente humano cuando el cliente lo solicite o "
                        "cuando no puedas resolver su consulta."
                    ),
                    "parameters": {"type": "object", "properties": {}},
                },
                "webhook": {"url": self._url("/webhooks/tools/transfer")},
            },
        ]

    async def aclose(self) -> None:
        await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}{path}"

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as exc:
            logger.error("Gateway request to %s failed: %s", path, exc)
            raise UpstreamGatewayError(f"Request to {path} failed: {exc}") from exc

        if response.is_error:
            logger.error("Gateway %s returned %s: %s", path, response.status_code, response.text)
            raise UpstreamGatewayError(
                f"{path} returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}
