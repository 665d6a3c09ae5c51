"""Schemas for aggregate reporting."""
from __future__ import annotations

from pydantic import BaseModel, Field


class CallStats(BaseModel):
    total: int = 0
    completed: int = 0
    missed: int = 0
    inbound: int = 0
    outbound: int = 0
    avg_duration: int = 0
    total_duration: int = 0


class SentimentStats(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class OutcomeCount(BaseModel):
    outcome: str
    count: int


class StatsSummary(BaseModel):
    calls: CallStats = Field(default_factory=CallStats)
    sentiment: SentimentStats = Field(default_factory=SentimentStats)
    outcomes: list[OutcomeCount] = Field(default_factory=list)


class StatsResponse(BaseModel):
    data: StatsSummary
