"""Provider webhook endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from ..core.dependencies import get_controller
from ..schemas import webhooks as schemas
from ..services.lifecycle import CallLifecycleController

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/voice", response_model=schemas.WebhookAck)
async def voice_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    controller: CallLifecycleController = Depends(get_controller),
) -> schemas.WebhookAck:
    """Acknowledge a call lifecycle event and process it after the response.

    The provider retries anything but a 2xx, so this always succeeds; the
    controller handles duplicates and failures on its own.
    """

    try:
        envelope = schemas.WebhookEnvelope.model_validate(await request.json())
    except (ValueError, PydanticValidationError) as exc:
        logger.warning("Ignoring malformed voice webhook: %s", exc)
        return schemas.WebhookAck()

    event = envelope.data
    if event is None:
        logger.warning("Voice webhook without data; ignoring")
        return schemas.WebhookAck()

    background_tasks.add_task(controller.handle_event, event.event_type, event.payload)
    return schemas.WebhookAck()
