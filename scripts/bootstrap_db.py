"""Create the database schema and seed sample calls for development."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from voicehub.core.config import settings
from voicehub.db.session import RecordStore
from voicehub.models import Call, CallDirection, CallStatus, Insight, TranscriptTurn
from voicehub.repositories import calls as calls_repo
from voicehub.repositories import insights as insights_repo
from voicehub.repositories import transcripts as transcripts_repo
from voicehub.services.outcomes import classify

CALLS = [
    {
        "call_control_id": "v3:seed-inbound-appointment",
        "direction": CallDirection.INBOUND,
        "from": "+17875550101",
        "to": "+17875550100",
        "minutes_ago": 95,
        "duration": 142,
        "transcript": [
            ("assistant", "Hola, gracias por llamar. ¿En qué le puedo ayudar?"),
            ("user", "Quisiera agendar una cita para la evaluación."),
            ("assistant", "Con gusto. Le envío un enlace por SMS para reservar."),
        ],
        "insights": {
            "summary": "El cliente quiere agendar una cita de evaluación.",
            "sentiment": "positive",
            "action_items": ["Confirmar la cita"],
            "topics": ["citas"],
        },
    },
    {
        "call_control_id": "v3:seed-outbound-info",
        "direction": CallDirection.OUTBOUND,
        "from": "+17875550100",
        "to": "+17875550102",
        "minutes_ago": 60,
        "duration": 75,
        "transcript": [
            ("assistant", "Le llamo para darle información de precios."),
            ("user", "Sí, tengo una pregunta sobre el plan mensual."),
        ],
        "insights": {
            "summary": "Consulta de información sobre precios.",
            "sentiment": "neutral",
            "topics": ["precios"],
        },
    },
    {
        "call_control_id": "v3:seed-inbound-missed",
        "direction": CallDirection.INBOUND,
        "from": "+17875550103",
        "to": "+17875550100",
        "minutes_ago": 20,
        "duration": None,
        "transcript": [],
        "insights": None,
    },
]


async def seed_calls(store: RecordStore) -> int:
    """Insert the sample calls that are not already present."""

    now = datetime.now(timezone.utc)
    created = 0
    async with store.session() as session:
        async with session.begin():
            for data in CALLS:
                if await calls_repo.get_by_control_id(session, data["call_control_id"]) is not None:
                    continue

                started_at = now - timedelta(minutes=data["minutes_ago"])
                call = Call(
                    id=str(uuid4()),
                    call_control_id=data["call_control_id"],
                    direction=data["direction"],
                    from_number=data["from"],
                    to_number=data["to"],
                    status=CallStatus.INITIATED,
                    started_at=started_at,
                    duration_seconds=0,
                )
                if data["duration"] is not None:
                    call.status = CallStatus.ENDED
                    call.answered_at = started_at + timedelta(seconds=3)
                    call.ended_at = call.answered_at + timedelta(seconds=data["duration"])
                    call.duration_seconds = data["duration"]
                    call.hangup_cause = "normal_clearing"
                await calls_repo.create_call(session, call)

                await transcripts_repo.add_turns(
                    session,
                    [
                        TranscriptTurn(
                            call_id=call.id,
                            role=role,
                            content=content,
                            timestamp=started_at + timedelta(seconds=5 * (index + 1)),
                        )
                        for index, (role, content) in enumerate(data["transcript"])
                    ],
                )

                insights = data["insights"]
                if insights is not None:
                    await insights_repo.upsert_insight(
                        session,
                        Insight(
                            call_id=call.id,
                            summary=insights["summary"],
                            sentiment=insights["sentiment"],
                            action_items=insights.get("action_items", []),
                            topics=insights.get("topics", []),
                            outcome=classify(insights).value,
                            raw_payload=insights,
                            created_at=call.ended_at or now,
                        ),
                    )
                created += 1
    return created


async def main() -> None:
    store = RecordStore(settings.database_url)
    await store.open()
    try:
        created = await seed_calls(store)
    finally:
        await store.close()
    print(f"Database schema ensured at {settings.database_path}; {created} sample calls seeded.")


if __name__ == "__main__":
    asyncio.run(main())
