"""Expose ORM models."""
from .call import Call, CallDirection, CallStatus
from .insight import Insight
from .transcript import TranscriptTurn

__all__ = [
    "Call",
    "CallDirection",
    "CallStatus",
    "Insight",
    "TranscriptTurn",
]
