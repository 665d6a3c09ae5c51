"""Read-only aggregate queries over calls and insights."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.call import Call, CallDirection, CallStatus
from ..models.insight import Insight


@dataclass(slots=True)
class DailyRow:
    total_calls: int
    completed: int
    missed: int
    inbound: int
    outbound: int
    avg_duration: float | None
    total_duration: int


@dataclass(slots=True)
class SentimentRow:
    positive: int
    neutral: int
    negative: int


def _count_when(condition) -> object:  # noqa: ANN001 - SQL expression
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


async def daily(session: AsyncSession, from_date: datetime, to_date: datetime) -> DailyRow:
    """Return call counts and duration figures for calls started in the window."""

    stmt = select(
        func.count(Call.id),
        _count_when(Call.status == CallStatus.ENDED),
        _count_when(Call.status == CallStatus.INITIATED),
        _count_when(Call.direction == CallDirection.INBOUND),
        _count_when(Call.direction == CallDirection.OUTBOUND),
        func.avg(case((Call.duration_seconds > 0, Call.duration_seconds), else_=None)),
        func.coalesce(func.sum(Call.duration_seconds), 0),
    ).where(Call.started_at >= from_date, Call.started_at <= to_date)

    row = (await session.execute(stmt)).one()
    return DailyRow(
        total_calls=int(row[0] or 0),
        completed=int(row[1]),
        missed=int(row[2]),
        inbound=int(row[3]),
        outbound=int(row[4]),
        avg_duration=float(row[5]) if row[5] is not None else None,
        total_duration=int(row[6]),
    )


async def sentiment(session: AsyncSession, from_date: datetime, to_date: datetime) -> SentimentRow:
    """Return sentiment counts for insights whose call started in the window."""

    stmt = (
        select(
            _count_when(Insight.sentiment == "positive"),
            _count_when(Insight.sentiment == "neutral"),
            _count_when(Insight.sentiment == "negative"),
        )
        .select_from(Insight)
        .join(Call, Call.id == Insight.call_id)
        .where(Call.started_at >= from_date, Call.started_at <= to_date)
    )
    row = (await session.execute(stmt)).one()
    return SentimentRow(positive=int(row[0]), neutral=int(row[1]), negative=int(row[2]))


async def outcomes(session: AsyncSession, from_date: datetime, to_date: datetime) -> list[tuple[str, int]]:
    """Return ``(outcome, count)`` pairs for insights whose call started in the window."""

    stmt = (
        select(Insight.outcome, func.count(Insight.id))
        .join(Call, Call.id == Insight.call_id)
        .where(Call.started_at >= from_date, Call.started_at <= to_date)
        .group_by(Insight.outcome)
        .order_by(func.count(Insight.id).desc(), Insight.outcome.asc())
    )
    result = await session.execute(stmt)
    return [(outcome, int(count)) for outcome, count in result.all()]
