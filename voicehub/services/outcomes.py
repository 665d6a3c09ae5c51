"""Outcome classification for completed calls."""
from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class OutcomeCategory(str, enum.Enum):
    APPOINTMENT = "appointment"
    TRANSFER = "transfer"
    INFO = "info"
    OTHER = "other"


# Checked in order; the first group with a hit wins.
KEYWORD_GROUPS: tuple[tuple[OutcomeCategory, tuple[str, ...]], ...] = (
    (OutcomeCategory.APPOINTMENT, ("cita", "agendar", "appointment")),
    (OutcomeCategory.TRANSFER, ("transfer", "humano", "agente")),
    (OutcomeCategory.INFO, ("info", "pregunt", "consult")),
)


class OutcomeClassifier(Protocol):
    def classify(self, insights: Mapping[str, Any]) -> OutcomeCategory: ...


class KeywordOutcomeClassifier:
    """Substring heuristic over the insight summary and action items."""

    def __init__(
        self,
        groups: Sequence[tuple[OutcomeCategory, Sequence[str]]] = KEYWORD_GROUPS,
    ) -> None:
        self._groups = tuple((category, tuple(words)) for category, words in groups)

    def classify(self, insights: Mapping[str, Any]) -> OutcomeCategory:
        text = _combined_text(insights)
        for category, words in self._groups:
            if any(word in text for word in words):
                return category
        return OutcomeCategory.OTHER


def _combined_text(insights: Mapping[str, Any]) -> str:
    summary = insights.get("summary") or ""
    actions = insights.get("action_items") or []
    if isinstance(actions, str):
        actions = [actions]
    joined_actions = " ".join(str(item) for item in actions)
    return f"{summary} {joined_actions}".lower()


default_classifier = KeywordOutcomeClassifier()


def classify(insights: Mapping[str, Any]) -> OutcomeCategory:
    """Classify with the default keyword heuristic."""

    return default_classifier.classify(insights)
