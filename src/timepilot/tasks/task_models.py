# src/timepilot/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

MINUTES_PER_DAY = 24 * 60

Timestamp = float | str | datetime | None


@dataclass(frozen=True, slots=True)
class HistoricalTask:
    """
    A completed task with the time it actually took.

    Immutable once recorded: the store appends one of these when a scheduled
    task is marked complete and never rewrites it afterwards.
    """

    title: str
    estimated_minutes: float | None
    actual_minutes: float | None
    completed_at: Timestamp = None


@dataclass(frozen=True, slots=True)
class Candidate:
    task: HistoricalTask
    score: float


@dataclass(slots=True)
class ScheduledTask:
    id: int
    title: str
    start_minute: int
    duration_minutes: int
    completed: bool = False
    category: str = "general"
    location: str | None = None

    day: str | None = None
    actual_minutes: int | None = None
    is_travel: bool = False
    travel_minutes: int | None = None

    @property
    def end_minute(self) -> int:
        # Tasks are day-scoped: running past midnight is not special-cased.
        return self.start_minute + max(0, self.duration_minutes)

    @property
    def time(self) -> str:
        return format_hhmm(self.start_minute)


@dataclass(frozen=True, slots=True)
class OracleVerdict:
    """Parsed, validated reply of a classification oracle."""

    family: str | None
    similar_indices: list[int] = field(default_factory=list)
    suggested_minutes: int | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True)
class EstimationSuggestion:
    message: str
    suggested_minutes: int | None
    sample_size: int
    aggregate_minutes: int
    family: str | None = None
    source: Literal["oracle", "local"] = "local"


def parse_hhmm(value: str) -> int:
    """'09:30' -> 570. Raises ValueError on anything else."""
    parts = str(value or "").strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"expected HH:MM, got {value!r}")
    h, m = int(parts[0]), int(parts[1])
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"time out of range: {value!r}")
    return h * 60 + m


def format_hhmm(minutes: int) -> str:
    minutes = max(0, int(minutes))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
