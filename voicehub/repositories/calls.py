"""Call repository helpers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import DuplicateKeyError, NotFoundError, PersistenceError
from ..models.call import Call, CallDirection, CallStatus


@dataclass(slots=True)
class CallFilters:
    direction: CallDirection | None = None
    status: CallStatus | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    limit: int = 50
    offset: int = 0


async def create_call(session: AsyncSession, call: Call) -> Call:
    """Insert a new call, refusing a second row for the same correlation id."""

    session.add(call)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise DuplicateKeyError(f"Call {call.call_control_id} already exists") from exc
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Could not insert call {call.call_control_id}") from exc
    return call


async def get_by_control_id(session: AsyncSession, call_control_id: str) -> Call | None:
    """Return a call by its provider correlation id."""

    stmt: Select[tuple[Call]] = select(Call).where(Call.call_control_id == call_control_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def update_status(session: AsyncSession, call_control_id: str, status: CallStatus) -> None:
    """Set the status of a call."""

    await _update(session, call_control_id, status=status)


async def mark_answered(session: AsyncSession, call_control_id: str, answered_at: datetime) -> None:
    """Stamp the answer time and move the call to ``answered``."""

    await _update(session, call_control_id, status=CallStatus.ANSWERED, answered_at=answered_at)


async def mark_ended(
    session: AsyncSession,
    call_control_id: str,
    *,
    ended_at: datetime,
    duration_seconds: int,
    hangup_cause: str | None,
) -> None:
    """Close out a call with its end time, duration and hangup cause."""

    await _update(
        session,
        call_control_id,
        status=CallStatus.ENDED,
        ended_at=ended_at,
        duration_seconds=duration_seconds,
        hangup_cause=hangup_cause,
    )


async def query_calls(session: AsyncSession, filters: CallFilters) -> tuple[list[Call], int]:
    """Return one page of calls matching the filters and the unpaginated count."""

    conditions = []
    if filters.direction is not None:
        conditions.append(Call.direction == filters.direction)
    if filters.status is not None:
        conditions.append(Call.status == filters.status)
    if filters.from_date is not None:
        conditions.append(Call.started_at >= filters.from_date)
    if filters.to_date is not None:
        conditions.append(Call.started_at <= filters.to_date)

    count_stmt = select(func.count()).select_from(Call).where(*conditions)
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = (
        select(Call)
        .where(*conditions)
        .order_by(Call.started_at.desc())
        .limit(filters.limit)
        .offset(filters.offset)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), int(total)


async def list_recent(session: AsyncSession, limit: int = 20) -> list[Call]:
    """Return the most recently started calls."""

    stmt = select(Call).order_by(Call.started_at.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _update(session: AsyncSession, call_control_id: str, **values: object) -> None:
    stmt = (
        update(Call)
        .where(Call.call_control_id == call_control_id)
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Could not update call {call_control_id}") from exc
    if result.rowcount == 0:
        raise NotFoundError(f"Call {call_control_id} not found")
