"""Read-only reporting projections over calls and insights."""
from __future__ import annotations

from datetime import datetime, time, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ValidationError
from ..core.timeutils import ensure_utc
from ..repositories import stats as stats_repo
from ..schemas import stats as schemas


async def daily_summary(session: AsyncSession, from_date: datetime, to_date: datetime) -> schemas.CallStats:
    """Return call counts for the window.

    ``missed`` counts calls still at ``initiated``; that is a heuristic for
    unanswered calls, not an exact count of abandoned ones.
    """

    row = await stats_repo.daily(session, ensure_utc(from_date), ensure_utc(to_date))
    return schemas.CallStats(
        total=row.total_calls,
        completed=row.completed,
        missed=row.missed,
        inbound=row.inbound,
        outbound=row.outbound,
        avg_duration=round(row.avg_duration or 0),
        total_duration=row.total_duration,
    )


async def sentiment_breakdown(
    session: AsyncSession, from_date: datetime, to_date: datetime
) -> schemas.SentimentStats:
    """Return sentiment counts for calls started in the window."""

    row = await stats_repo.sentiment(session, ensure_utc(from_date), ensure_utc(to_date))
    return schemas.SentimentStats(positive=row.positive, neutral=row.neutral, negative=row.negative)


async def outcome_histogram(
    session: AsyncSession, from_date: datetime, to_date: datetime
) -> list[schemas.OutcomeCount]:
    """Return outcome counts for calls started in the window."""

    rows = await stats_repo.outcomes(session, ensure_utc(from_date), ensure_utc(to_date))
    return [schemas.OutcomeCount(outcome=outcome, count=count) for outcome, count in rows]


async def summary_for_range(
    session: AsyncSession,
    from_date: datetime | None,
    to_date: datetime | None,
) -> schemas.StatsSummary:
    """Bundle all projections for an explicit window."""

    if from_date is None or to_date is None:
        raise ValidationError("from_date and to_date required")
    if ensure_utc(from_date) > ensure_utc(to_date):
        raise ValidationError("from_date must not be after to_date")

    return schemas.StatsSummary(
        calls=await daily_summary(session, from_date, to_date),
        sentiment=await sentiment_breakdown(session, from_date, to_date),
        outcomes=await outcome_histogram(session, from_date, to_date),
    )


async def summary_for_today(session: AsyncSession, now: datetime | None = None) -> schemas.StatsSummary:
    """Bundle all projections for the current UTC day."""

    from_date, to_date = day_window(now or datetime.now(timezone.utc))
    return await summary_for_range(session, from_date, to_date)


def day_window(now: datetime) -> tuple[datetime, datetime]:
    """Return the first and last instant of the UTC day containing ``now``."""

    day = ensure_utc(now).date()
    return (
        datetime.combine(day, time.min, tzinfo=timezone.utc),
        datetime.combine(day, time.max, tzinfo=timezone.utc),
    )
