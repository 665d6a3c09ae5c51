"""Insight repository helpers."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import PersistenceError
from ..models.insight import Insight


async def get_by_call(session: AsyncSession, call_id: str) -> Insight | None:
    """Return the insight attached to a call, if any."""

    stmt = select(Insight).where(Insight.call_id == call_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def upsert_insight(session: AsyncSession, insight: Insight) -> Insight:
    """Insert the insight or replace the one already stored for the call."""

    existing = await get_by_call(session, insight.call_id)
    if existing is None:
        session.add(insight)
        target = insight
    else:
        existing.summary = insight.summary
        existing.sentiment = insight.sentiment
        existing.action_items = list(insight.action_items or [])
        existing.topics = list(insight.topics or [])
        existing.outcome = insight.outcome
        existing.raw_payload = dict(insight.raw_payload or {})
        existing.created_at = insight.created_at or existing.created_at
        target = existing

    try:
        await session.flush()
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Could not store insight for call {insight.call_id}") from exc
    return target
