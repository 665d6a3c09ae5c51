"""Shared fixtures: a throwaway SQLite store, a recording gateway and a fixed clock."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio

from voicehub.core.exceptions import UpstreamGatewayError
from voicehub.db.session import RecordStore
from voicehub.services.lifecycle import CallLifecycleController

T0 = datetime(2025, 10, 10, 12, 0, tzinfo=timezone.utc)


class FakeGateway:
    """Stands in for the provider API, recording every action requested."""

    def __init__(self) -> None:
        self.actions: list[tuple[Any, ...]] = []
        self.failing: set[str] = set()

    async def _record(self, name: str, *args: Any) -> dict[str, Any]:
        self.actions.append((name, *args))
        if name in self.failing:
            raise UpstreamGatewayError(f"{name} rejected", status_code=422, body="{}")
        return {"result": "ok"}

    async def answer(self, call_control_id: str) -> dict[str, Any]:
        return await self._record("answer", call_control_id)

    async def start_ai_assistant(self, call_control_id: str) -> dict[str, Any]:
        return await self._record("start_ai_assistant", call_control_id)

    async def transfer(self, call_control_id: str, to: str | None = None) -> dict[str, Any]:
        return await self._record("transfer", call_control_id, to)

    async def hangup(self, call_control_id: str) -> dict[str, Any]:
        return await self._record("hangup", call_control_id)

    async def send_message(self, to: str, text: str) -> dict[str, Any]:
        return await self._record("send_message", to, text)

    async def dial(self, to: str, webhook_url: str | None = None) -> dict[str, Any]:
        await self._record("dial", to)
        return {"call_control_id": "v3:outbound-1", "to": to}

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [action for action in self.actions if action[0] == name]


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest_asyncio.fixture
async def store(tmp_path):
    record_store = RecordStore(f"sqlite+aiosqlite:///{(tmp_path / 'data' / 'calls.db').as_posix()}")
    await record_store.open()
    try:
        yield record_store
    finally:
        await record_store.close()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def controller(store, gateway, clock) -> CallLifecycleController:
    return CallLifecycleController(store, gateway, clock=clock)


def event_payload(call_control_id: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"call_control_id": call_control_id}
    payload.update(extra)
    return payload
