"""FastAPI dependencies resolving the handles owned by the running application."""
from __future__ import annotations

from fastapi import Request

from ..services.gateway import VoiceGateway
from ..services.lifecycle import CallLifecycleController


def get_gateway(request: Request) -> VoiceGateway:
    return request.app.state.gateway


def get_controller(request: Request) -> CallLifecycleController:
    return request.app.state.controller
