"""FastAPI application for the voice AI call hub."""
from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.exceptions import (
    NotFoundError,
    PersistenceError,
    UpstreamGatewayError,
    ValidationError,
    VoiceHubError,
)
from .db.session import RecordStore
from .routers import calls as calls_router
from .routers import tools as tools_router
from .routers import webhooks as webhooks_router
from .services.gateway import VoiceGateway
from .services.lifecycle import CallLifecycleController

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the record store and gateway for the lifetime of the process."""

    missing = settings.missing_provider_settings()
    for name in missing:
        logger.warning("Missing env var: %s", name)

    store = RecordStore(settings.database_url)
    await store.open()
    gateway = VoiceGateway(settings)

    app.state.store = store
    app.state.gateway = gateway
    app.state.controller = CallLifecycleController(store, gateway)
    logger.info("VoiceAI Hub ready (env=%s, base_url=%s)", settings.app_env, settings.base_url)

    try:
        yield
    finally:
        await gateway.aclose()
        await store.close()


app = FastAPI(title="VoiceAI Hub", version="1.0.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

ERROR_STATUS: dict[type[VoiceHubError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    UpstreamGatewayError: 502,
    PersistenceError: 503,
}


@app.exception_handler(VoiceHubError)
async def voicehub_error_handler(request: Request, exc: VoiceHubError) -> JSONResponse:
    """Render domain errors raised by API routes as JSON."""

    status_code = next(
        (code for error_cls, code in ERROR_STATUS.items() if isinstance(exc, error_cls)),
        500,
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"error": exc.message})


@app.get("/", tags=["meta"])
async def index() -> dict[str, object]:
    """Describe the service and its main endpoints."""

    return {
        "name": "VoiceAI Hub",
        "version": app.version,
        "status": "running",
        "endpoints": {
            "webhooks": "/webhooks/voice",
            "api": "/api/calls",
            "health": "/api/health",
        },
    }


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, object]:
    """Simple health probe for monitoring."""

    return {
        "status": "ok",
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "env": settings.app_env,
    }


app.include_router(webhooks_router.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(tools_router.router, prefix="/webhooks/tools", tags=["tools"])
app.include_router(calls_router.router, prefix="/api", tags=["calls"])
