"""Tests for the record store and its repositories against a real SQLite file."""
from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from uuid import uuid4

import pytest

from conftest import T0
from voicehub.core.exceptions import DuplicateKeyError, NotFoundError
from voicehub.db.session import RecordStore
from voicehub.models import Call, CallDirection, CallStatus, Insight, TranscriptTurn
from voicehub.repositories import calls as calls_repo
from voicehub.repositories import insights as insights_repo
from voicehub.repositories import stats as stats_repo
from voicehub.repositories import transcripts as transcripts_repo


def _call(control_id: str, **overrides) -> Call:
    values = dict(
        id=str(uuid4()),
        call_control_id=control_id,
        direction=CallDirection.INBOUND,
        status=CallStatus.INITIATED,
        from_number="+17875550100",
        to_number="+17875550199",
        started_at=T0,
        duration_seconds=0,
    )
    values.update(overrides)
    return Call(**values)


async def _insert(store: RecordStore, *calls: Call) -> None:
    async with store.session() as session:
        async with session.begin():
            for call in calls:
                await calls_repo.create_call(session, call)


@pytest.mark.asyncio
async def test_open_creates_storage_directory(tmp_path):
    target = tmp_path / "nested" / "dir" / "voiceai.db"
    record_store = RecordStore(f"sqlite+aiosqlite:///{target.as_posix()}")

    await record_store.open()
    await record_store.close()

    assert Path(target).exists()
    assert not record_store.is_open


@pytest.mark.asyncio
async def test_session_requires_open_store(tmp_path):
    record_store = RecordStore(f"sqlite+aiosqlite:///{(tmp_path / 'x.db').as_posix()}")

    with pytest.raises(RuntimeError):
        record_store.session()


@pytest.mark.asyncio
async def test_create_call_rejects_duplicate_correlation_id(store):
    await _insert(store, _call("cc-1"))

    with pytest.raises(DuplicateKeyError):
        await _insert(store, _call("cc-1"))

    async with store.session() as session:
        rows, total = await calls_repo.query_calls(session, calls_repo.CallFilters())
    assert total == 1
    assert rows[0].call_control_id == "cc-1"


@pytest.mark.asyncio
async def test_write_is_visible_from_a_fresh_handle(store):
    await _insert(store, _call("cc-durable"))
    await store.close()

    reopened = RecordStore(store.database_url)
    await reopened.open()
    try:
        async with reopened.session() as session:
            call = await calls_repo.get_by_control_id(session, "cc-durable")
    finally:
        await reopened.close()

    assert call is not None
    assert call.status is CallStatus.INITIATED


@pytest.mark.asyncio
async def test_partial_updates_by_correlation_id(store):
    await _insert(store, _call("cc-2"))
    answered_at = T0 + timedelta(seconds=5)
    ended_at = T0 + timedelta(seconds=65)

    async with store.session() as session:
        async with session.begin():
            await calls_repo.mark_answered(session, "cc-2", answered_at)
        async with session.begin():
            await calls_repo.update_status(session, "cc-2", CallStatus.AI_ACTIVE)
        async with session.begin():
            await calls_repo.mark_ended(
                session, "cc-2", ended_at=ended_at, duration_seconds=60, hangup_cause="normal_clearing"
            )

    async with store.session() as session:
        call = await calls_repo.get_by_control_id(session, "cc-2")

    assert call.status is CallStatus.ENDED
    assert call.answered_at.replace(tzinfo=None) == answered_at.replace(tzinfo=None)
    assert call.ended_at.replace(tzinfo=None) == ended_at.replace(tzinfo=None)
    assert call.duration_seconds == 60
    assert call.hangup_cause == "normal_clearing"


@pytest.mark.asyncio
async def test_updates_for_unknown_call_raise_not_found(store):
    async with store.session() as session:
        with pytest.raises(NotFoundError):
            async with session.begin():
                await calls_repo.update_status(session, "missing", CallStatus.ENDED)
        with pytest.raises(NotFoundError):
            async with session.begin():
                await calls_repo.mark_answered(session, "missing", T0)


@pytest.mark.asyncio
async def test_query_calls_total_ignores_pagination(store):
    await _insert(
        store,
        _call("cc-a", status=CallStatus.ENDED, started_at=T0),
        _call("cc-b", status=CallStatus.ENDED, started_at=T0 + timedelta(minutes=1)),
        _call("cc-c", status=CallStatus.ENDED, started_at=T0 + timedelta(minutes=2)),
        _call("cc-d", status=CallStatus.INITIATED, started_at=T0 + timedelta(minutes=3)),
    )

    async with store.session() as session:
        rows, total = await calls_repo.query_calls(
            session, calls_repo.CallFilters(status=CallStatus.ENDED, limit=1)
        )

    assert len(rows) == 1
    assert total == 3
    assert rows[0].call_control_id == "cc-c"


@pytest.mark.asyncio
async def test_query_calls_filters_direction_and_window(store):
    await _insert(
        store,
        _call("cc-in-early", started_at=T0 - timedelta(days=1)),
        _call("cc-in", started_at=T0),
        _call("cc-out", direction=CallDirection.OUTBOUND, started_at=T0 + timedelta(minutes=5)),
    )

    async with store.session() as session:
        rows, total = await calls_repo.query_calls(
            session,
            calls_repo.CallFilters(
                direction=CallDirection.INBOUND,
                from_date=T0 - timedelta(hours=1),
                to_date=T0 + timedelta(hours=1),
            ),
        )
        recent = await calls_repo.list_recent(session, limit=2)

    assert total == 1
    assert [row.call_control_id for row in rows] == ["cc-in"]
    assert [row.call_control_id for row in recent] == ["cc-out", "cc-in"]


@pytest.mark.asyncio
async def test_transcript_turns_are_returned_in_time_order(store):
    call = _call("cc-t")
    await _insert(store, call)

    async with store.session() as session:
        async with session.begin():
            await transcripts_repo.add_turns(
                session,
                [
                    TranscriptTurn(call_id=call.id, role="user", content="second", timestamp=T0 + timedelta(seconds=2)),
                    TranscriptTurn(call_id=call.id, role="assistant", content="first", timestamp=T0),
                ],
            )
        async with session.begin():
            await transcripts_repo.add_turn(
                session,
                TranscriptTurn(call_id=call.id, role="assistant", content="third", timestamp=T0 + timedelta(seconds=9)),
            )

    async with store.session() as session:
        turns = await transcripts_repo.list_by_call(session, call.id)

    assert [turn.content for turn in turns] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_upsert_insight_replaces_existing_row(store):
    call = _call("cc-i")
    await _insert(store, call)

    async with store.session() as session:
        async with session.begin():
            await insights_repo.upsert_insight(
                session,
                Insight(call_id=call.id, summary="first", sentiment="neutral", outcome="other", raw_payload={}),
            )
        async with session.begin():
            await insights_repo.upsert_insight(
                session,
                Insight(
                    call_id=call.id,
                    summary="second",
                    sentiment="positive",
                    action_items=["agendar cita"],
                    topics=["citas"],
                    outcome="appointment",
                    raw_payload={"v": 2},
                ),
            )

    async with store.session() as session:
        insight = await insights_repo.get_by_call(session, call.id)
        rows = await stats_repo.outcomes(session, T0 - timedelta(hours=1), T0 + timedelta(hours=1))

    assert insight.summary == "second"
    assert insight.sentiment == "positive"
    assert insight.action_items == ["agendar cita"]
    assert insight.raw_payload == {"v": 2}
    assert rows == [("appointment", 1)]


@pytest.mark.asyncio
async def test_aggregates_on_empty_window_are_zeroed(store):
    async with store.session() as session:
        daily = await stats_repo.daily(session, T0, T0 + timedelta(days=1))
        sentiment = await stats_repo.sentiment(session, T0, T0 + timedelta(days=1))
        outcomes = await stats_repo.outcomes(session, T0, T0 + timedelta(days=1))

    assert daily.total_calls == 0
    assert daily.completed == 0
    assert daily.missed == 0
    assert daily.avg_duration is None
    assert daily.total_duration == 0
    assert (sentiment.positive, sentiment.neutral, sentiment.negative) == (0, 0, 0)
    assert outcomes == []


@pytest.mark.asyncio
async def test_daily_aggregate_counts(store):
    await _insert(
        store,
        _call("cc-1", status=CallStatus.ENDED, duration_seconds=30),
        _call("cc-2", status=CallStatus.ENDED, duration_seconds=90, direction=CallDirection.OUTBOUND),
        _call("cc-3", status=CallStatus.INITIATED),
        _call("cc-4", status=CallStatus.ENDED, duration_seconds=0),
    )

    async with store.session() as session:
        daily = await stats_repo.daily(session, T0 - timedelta(hours=1), T0 + timedelta(hours=1))

    assert daily.total_calls == 4
    assert daily.completed == 3
    assert daily.missed == 1
    assert daily.inbound == 3
    assert daily.outbound == 1
    assert daily.avg_duration == pytest.approx(60.0)
    assert daily.total_duration == 120
