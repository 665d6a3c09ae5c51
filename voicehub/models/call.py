"""Call model."""
from __future__ import annotations

from datetime import datetime, timezone
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .insight import Insight
    from .transcript import TranscriptTurn


class CallDirection(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class CallStatus(str, enum.Enum):
    INITIATED = "initiated"
    ANSWERED = "answered"
    AI_ACTIVE = "ai_active"
    ENDED = "ended"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Call(Base):
    """One telephone call attempt, addressed by the provider's call control id."""

    __tablename__ = "calls"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    call_control_id: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    call_leg_id: Mapped[str | None] = mapped_column(String)
    direction: Mapped[CallDirection] = mapped_column(
        Enum(CallDirection, name="call_direction", values_callable=_enum_values),
        default=CallDirection.INBOUND,
        nullable=False,
        index=True,
    )
    from_number: Mapped[str | None] = mapped_column(String)
    to_number: Mapped[str | None] = mapped_column(String)
    status: Mapped[CallStatus] = mapped_column(
        Enum(CallStatus, name="call_status", values_callable=_enum_values),
        default=CallStatus.INITIATED,
        nullable=False,
        index=True,
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    answered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    duration_seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hangup_cause: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    transcript: Mapped[list["TranscriptTurn"]] = relationship(
        "TranscriptTurn", back_populates="call", order_by="TranscriptTurn.timestamp"
    )
    insight: Mapped["Insight | None"] = relationship("Insight", back_populates="call", uselist=False)
