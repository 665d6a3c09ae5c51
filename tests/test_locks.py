"""Tests for per-key serialization."""
from __future__ import annotations

import asyncio

import pytest

from voicehub.services.locks import KeyedLocks


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLocks()
    order: list[str] = []

    async def worker(name: str, delay: float) -> None:
        async with locks.hold("call-1"):
            order.append(f"{name}-start")
            await asyncio.sleep(delay)
            order.append(f"{name}-end")

    await asyncio.gather(worker("a", 0.02), worker("b", 0))

    assert order == ["a-start", "a-end", "b-start", "b-end"]


@pytest.mark.asyncio
async def test_different_keys_run_independently():
    locks = KeyedLocks()
    entered = asyncio.Event()
    release = asyncio.Event()

    async def holder() -> None:
        async with locks.hold("call-1"):
            entered.set()
            await release.wait()

    task = asyncio.create_task(holder())
    await entered.wait()

    async with locks.hold("call-2"):
        assert len(locks) == 2

    release.set()
    await task


@pytest.mark.asyncio
async def test_registry_drops_idle_keys():
    locks = KeyedLocks()

    async with locks.hold("call-1"):
        assert len(locks) == 1

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_released_when_body_raises():
    locks = KeyedLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold("call-1"):
            raise RuntimeError("boom")

    assert len(locks) == 0
    async with locks.hold("call-1"):
        pass
