"""Tests for shared datetime normalisation."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from voicehub.core.timeutils import ensure_utc
from voicehub.schemas.calls import TranscriptTurnOut


def test_naive_datetime_is_taken_as_utc() -> None:
    value = ensure_utc(datetime(2025, 10, 10, 12, 0))

    assert value == datetime(2025, 10, 10, 12, 0, tzinfo=timezone.utc)
    assert value.tzinfo is timezone.utc


def test_aware_datetime_is_converted_to_utc() -> None:
    local = datetime(2025, 10, 10, 8, 0, tzinfo=timezone(timedelta(hours=-4)))

    assert ensure_utc(local) == datetime(2025, 10, 10, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(local).tzinfo is timezone.utc


def test_schema_datetimes_are_serialised_as_utc() -> None:
    turn = TranscriptTurnOut(
        id=1,
        call_id="call-1",
        role="user",
        content="hola",
        timestamp=datetime(2025, 10, 10, 12, 0, 5),
    )

    assert turn.timestamp.tzinfo is timezone.utc
