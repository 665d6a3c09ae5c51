"""Call lifecycle state machine driven by provider webhook events.

Delivery is at-least-once and unordered, so every handler tolerates
duplicates and events for calls it has never seen. Nothing raised while
handling an event escapes ``handle_event``: the provider has already been
acknowledged and only needs the event dropped and logged.
"""
from __future__ import annotations

import enum
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import DuplicateKeyError, PersistenceError, UpstreamGatewayError
from ..core.timeutils import ensure_utc
from ..db.session import RecordStore
from ..models.call import Call, CallDirection, CallStatus
from ..models.insight import Insight
from ..models.transcript import TranscriptTurn
from ..repositories import calls as calls_repo
from ..repositories import insights as insights_repo
from ..repositories import transcripts as transcripts_repo
from .gateway import VoiceGateway
from .locks import KeyedLocks
from .outcomes import OutcomeClassifier, default_classifier

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class EventType(str, enum.Enum):
    CALL_INITIATED = "call.initiated"
    CALL_ANSWERED = "call.answered"
    CONVERSATION_ENDED = "call.conversation.ended"
    INSIGHTS_GENERATED = "call.conversation_insights.generated"
    CALL_HANGUP = "call.hangup"


class EventResult(str, enum.Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    FAILED = "failed"


_INBOUND_VALUES = {"inbound", "incoming"}
_OUTBOUND_VALUES = {"outbound", "outgoing"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CallLifecycleController:
    """Apply lifecycle events to the record store and drive the voice gateway."""

    def __init__(
        self,
        store: RecordStore,
        gateway: VoiceGateway,
        *,
        classifier: OutcomeClassifier = default_classifier,
        clock: Clock = _utcnow,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._classifier = classifier
        self._clock = clock
        self._locks = locks or KeyedLocks()
        self._handlers: dict[str, Callable[[str, Mapping[str, Any]], Awaitable[EventResult]]] = {
            EventType.CALL_INITIATED.value: self._on_initiated,
            EventType.CALL_ANSWERED.value: self._on_answered,
            EventType.CONVERSATION_ENDED.value: self._on_conversation_ended,
            EventType.INSIGHTS_GENERATED.value: self._on_insights,
            EventType.CALL_HANGUP.value: self._on_hangup,
        }

    async def handle_event(self, event_type: str | None, payload: Mapping[str, Any] | None) -> EventResult:
        """Apply one event. Never raises."""

        payload = payload or {}
        call_control_id = payload.get("call_control_id")

        handler = self._handlers.get(event_type) if isinstance(event_type, str) else None
        if handler is None:
            logger.info("Unhandled event %s for call %r", event_type, call_control_id)
            return EventResult.IGNORED
        if not isinstance(call_control_id, str) or not call_control_id:
            logger.warning("Event %s carried no usable call_control_id (%r); dropping", event_type, call_control_id)
            return EventResult.IGNORED

        try:
            logger.info("Webhook %s | call %s", event_type, _short(call_control_id))
            async with self._locks.hold(call_control_id):
                return await handler(call_control_id, payload)
        except Exception:  # noqa: BLE001 - one bad event must not take down the stream
            logger.exception("Error handling %s for call %s", event_type, call_control_id)
            return EventResult.FAILED

    async def _on_initiated(self, call_control_id: str, payload: Mapping[str, Any]) -> EventResult:
        call = Call(
            id=str(uuid4()),
            call_control_id=call_control_id,
            call_leg_id=payload.get("call_leg_id"),
            direction=_parse_direction(payload.get("direction")),
            from_number=payload.get("from"),
            to_number=payload.get("to"),
            status=CallStatus.INITIATED,
            started_at=self._clock(),
            duration_seconds=0,
        )

        async with self._store.session() as session:
            try:
                async with _transaction(session):
                    existing = await calls_repo.get_by_control_id(session, call_control_id)
                    if existing is not None:
                        logger.info("Call %s already recorded; ignoring duplicate initiation", call_control_id)
                        return EventResult.IGNORED
                    await calls_repo.create_call(session, call)
            except DuplicateKeyError:
                logger.info("Call %s already recorded; ignoring duplicate initiation", call_control_id)
                return EventResult.IGNORED

        if call.direction is CallDirection.INBOUND:
            try:
                await self._gateway.answer(call_control_id)
            except UpstreamGatewayError as exc:
                logger.error("Answer failed for call %s: %s", call_control_id, exc.message)

        return EventResult.APPLIED

    async def _on_answered(self, call_control_id: str, payload: Mapping[str, Any]) -> EventResult:
        async with self._store.session() as session:
            async with _transaction(session):
                call = await calls_repo.get_by_control_id(session, call_control_id)
                if call is None:
                    return _unknown(EventType.CALL_ANSWERED, call_control_id)
                if call.status in (CallStatus.AI_ACTIVE, CallStatus.ENDED):
                    logger.info(
                        "Call %s is already %s; ignoring answer event", call_control_id, call.status.value
                    )
                    return EventResult.IGNORED
                if call.answered_at is None:
                    await calls_repo.mark_answered(session, call_control_id, self._clock())

            try:
                await self._gateway.start_ai_assistant(call_control_id)
            except UpstreamGatewayError as exc:
                # Left at ``answered``; a redelivered answer event retries the start.
                logger.error("Could not start AI assistant on call %s: %s", call_control_id, exc.message)
                return EventResult.APPLIED

            async with _transaction(session):
                await calls_repo.update_status(session, call_control_id, CallStatus.AI_ACTIVE)

        return EventResult.APPLIED

    async def _on_conversation_ended(self, call_control_id: str, payload: Mapping[str, Any]) -> EventResult:
        entries = payload.get("transcription")
        if entries is None:
            entries = payload.get("transcript")

        async with self._store.session() as session:
            async with _transaction(session):
                call = await calls_repo.get_by_control_id(session, call_control_id)
                if call is None:
                    return _unknown(EventType.CONVERSATION_ENDED, call_control_id)
                if not isinstance(entries, list) or not entries:
                    logger.info("AI conversation ended on call %s without transcript", call_control_id)
                    return EventResult.APPLIED

                turns = [self._build_turn(call.id, entry) for entry in entries]
                written = await transcripts_repo.add_turns(session, turns)

        logger.info("AI conversation ended on call %s; stored %d transcript turns", call_control_id, written)
        return EventResult.APPLIED

    async def _on_insights(self, call_control_id: str, payload: Mapping[str, Any]) -> EventResult:
        insights = payload.get("insights")
        if not isinstance(insights, Mapping):
            insights = payload

        summary = insights.get("summary")
        action_items = _as_list(insights.get("action_items"))
        sentiment = _parse_sentiment(insights.get("sentiment"))
        outcome = self._classifier.classify({"summary": summary, "action_items": action_items})

        async with self._store.session() as session:
            async with _transaction(session):
                call = await calls_repo.get_by_control_id(session, call_control_id)
                if call is None:
                    return _unknown(EventType.INSIGHTS_GENERATED, call_control_id)
                await insights_repo.upsert_insight(
                    session,
                    Insight(
                        call_id=call.id,
                        summary=summary,
                        sentiment=sentiment,
                        action_items=action_items,
                        topics=_as_list(insights.get("topics")),
                        outcome=outcome.value,
                        raw_payload=dict(payload),
                        created_at=self._clock(),
                    ),
                )

        logger.info(
            "Insights saved for call %s: sentiment=%s outcome=%s",
            call_control_id,
            sentiment or "n/a",
            outcome.value,
        )
        return EventResult.APPLIED

    async def _on_hangup(self, call_control_id: str, payload: Mapping[str, Any]) -> EventResult:
        async with self._store.session() as session:
            async with _transaction(session):
                call = await calls_repo.get_by_control_id(session, call_control_id)
                if call is None:
                    return _unknown(EventType.CALL_HANGUP, call_control_id)
                if call.status is CallStatus.ENDED:
                    logger.info("Call %s already ended; ignoring duplicate hangup", call_control_id)
                    return EventResult.IGNORED

                ended_at = self._clock()
                duration = 0
                if call.answered_at is not None:
                    answered_at = ensure_utc(call.answered_at)
                    ended_at = max(ended_at, answered_at)
                    duration = int(round((ended_at - answered_at).total_seconds()))

                hangup_cause = payload.get("hangup_cause") or "normal"
                await calls_repo.mark_ended(
                    session,
                    call_control_id,
                    ended_at=ended_at,
                    duration_seconds=duration,
                    hangup_cause=hangup_cause,
                )

        logger.info("Call %s ended | duration %ss | cause %s", call_control_id, duration, hangup_cause)
        return EventResult.APPLIED

    def _build_turn(self, call_id: str, entry: object) -> TranscriptTurn:
        if not isinstance(entry, Mapping):
            return TranscriptTurn(call_id=call_id, role="unknown", content=str(entry), timestamp=self._clock())
        content = entry.get("content") or entry.get("text") or ""
        return TranscriptTurn(
            call_id=call_id,
            role=entry.get("role") or "unknown",
            content=str(content),
            timestamp=_parse_timestamp(entry.get("timestamp")) or self._clock(),
        )


@asynccontextmanager
async def _transaction(session: AsyncSession) -> AsyncIterator[None]:
    """Run a block in a transaction whose commit is durable when the block exits."""

    try:
        async with session.begin():
            yield
    except SQLAlchemyError as exc:
        raise PersistenceError("Database commit failed") from exc


def _unknown(event_type: EventType, call_control_id: str) -> EventResult:
    logger.warning("Ignoring %s for unknown call %s", event_type.value, call_control_id)
    return EventResult.IGNORED


def _short(call_control_id: str | None) -> str:
    if not call_control_id:
        return "-"
    return f"{call_control_id[:12]}..." if len(call_control_id) > 12 else call_control_id


def _parse_direction(value: object) -> CallDirection:
    lowered = str(value or "").strip().lower()
    if lowered in _OUTBOUND_VALUES:
        return CallDirection.OUTBOUND
    if lowered and lowered not in _INBOUND_VALUES:
        logger.warning("Unknown call direction %r; treating as inbound", value)
    return CallDirection.INBOUND


def _parse_sentiment(value: object) -> str | None:
    if isinstance(value, Mapping):
        value = value.get("overall")
    if value is None:
        return None
    return str(value).strip().lower() or None


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_utc(parsed)


def _as_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]
