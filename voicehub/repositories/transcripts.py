"""Transcript repository helpers."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import PersistenceError
from ..models.transcript import TranscriptTurn


async def add_turn(session: AsyncSession, turn: TranscriptTurn) -> TranscriptTurn:
    """Append a single transcript turn."""

    await add_turns(session, [turn])
    return turn


async def add_turns(session: AsyncSession, turns: Iterable[TranscriptTurn]) -> int:
    """Append a batch of transcript turns and return how many were written."""

    batch = list(turns)
    session.add_all(batch)
    try:
        await session.flush()
    except SQLAlchemyError as exc:
        raise PersistenceError("Could not append transcript turns") from exc
    return len(batch)


async def list_by_call(session: AsyncSession, call_id: str) -> list[TranscriptTurn]:
    """Return the transcript of a call in chronological order."""

    stmt = (
        select(TranscriptTurn)
        .where(TranscriptTurn.call_id == call_id)
        .order_by(TranscriptTurn.timestamp.asc(), TranscriptTurn.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
