"""Static SMS copy sent by the assistant's informational message tool."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class MessageTemplate:
    """SMS body for one informational category."""

    key: str
    text: str
    accepts_custom_text: bool = False


MESSAGE_TEMPLATES: dict[str, MessageTemplate] = {
    "location": MessageTemplate(
        key="location",
        text=(
            "📍 Revita Wellness - Villas de San Francisco Plaza II, Ave. De Diego #87, Suite 214, "
            "San Juan PR\n\nGoogle Maps: https://maps.app.goo.gl/YourLinkHere"
        ),
    ),
    "appointment": MessageTemplate(
        key="appointment",
        text=(
            "📅 Agenda tu cita en Revita Wellness:\n"
            "https://booking.setmore.com/scheduleappointment/revitawellness"
        ),
    ),
    "weight_loss": MessageTemplate(
        key="weight_loss",
        text=(
            "⚖️ Completa tu evaluación para el programa de pérdida de peso:\n"
            "https://revitawellnesspr.com/weight-loss-evaluation"
        ),
    ),
    "prices": MessageTemplate(
        key="prices",
        text="💰 Consulta nuestros precios y servicios:\nhttps://revitawellnesspr.com/prices",
    ),
    "product": MessageTemplate(
        key="product",
        text="🛒 Conoce nuestros productos:\nhttps://revitawellnesspr.com/products",
        accepts_custom_text=True,
    ),
}

DEFAULT_MESSAGE = "Gracias por contactar a Revita Wellness."

MESSAGE_TYPES: tuple[str, ...] = tuple(MESSAGE_TEMPLATES)


def render_message(message_type: str, custom_text: str | None = None) -> str:
    """Return the SMS body for a category, using the custom text where it applies."""

    template = MESSAGE_TEMPLATES.get(message_type)
    if template is None:
        return custom_text or DEFAULT_MESSAGE
    if template.accepts_custom_text and custom_text:
        return f"🛒 Información del producto: {custom_text}"
    return template.text
