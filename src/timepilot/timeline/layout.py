# src/timepilot/timeline/layout.py

"""
Timeline layout for one day.

Tasks are packed into lanes (horizontal tracks) so that no two tasks in the
same lane overlap in time. Processing in start order and reusing the first
free lane yields the minimum lane count (interval graph colouring).

Rendering gives every lane the same width, 100 / lane_count percent, using the
lane count of the whole day rather than of each overlap cluster. Tasks that
never overlap anything still get a narrow slot on busy days; this matches the
existing day view and is kept as is.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass

from ..tasks.task_models import ScheduledTask

DEFAULT_PX_PER_MINUTE = 2

TASK_COLORS = ("#2563eb", "#7c3aed", "#0891b2", "#16a34a", "#f97316", "#facc15")
TRAVEL_COLORS = ("#0f172a", "#38bdf8")
COMPLETED_COLORS = ("#27272a", "#3f3f46")


@dataclass(frozen=True, slots=True)
class LaneSlot:
    task: ScheduledTask
    lane: int
    top_px: int
    height_px: int
    left_percent: float
    width_percent: float
    background: str
    border: str


@dataclass(frozen=True, slots=True)
class Timeline:
    lane_count: int
    slots: tuple[LaneSlot, ...]

    def lanes(self) -> dict[Hashable, int]:
        return {s.task.id: s.lane for s in self.slots}


def _end(task: ScheduledTask) -> int:
    return task.start_minute + max(0, task.duration_minutes)


def assign_lanes(tasks: Sequence[ScheduledTask]) -> list[tuple[ScheduledTask, int]]:
    """(task, lane) pairs in placement order (start time, then input order)."""
    ordered = sorted(tasks, key=lambda t: t.start_minute)
    lane_ends: list[int] = []
    placed: list[tuple[ScheduledTask, int]] = []

    for task in ordered:
        start = task.start_minute
        for i, end in enumerate(lane_ends):
            if end <= start:
                lane_ends[i] = _end(task)
                placed.append((task, i))
                break
        else:
            lane_ends.append(_end(task))
            placed.append((task, len(lane_ends) - 1))

    return placed


def layout(tasks: Sequence[ScheduledTask]) -> dict[Hashable, int]:
    """task id -> lane index. Never fails; empty input gives {}."""
    return {task.id: lane for task, lane in assign_lanes(tasks)}


def lane_count(lanes: dict[Hashable, int]) -> int:
    return max(lanes.values()) + 1 if lanes else 0


def slot_geometry(lane: int, lanes_total: int) -> tuple[float, float]:
    """(left_percent, width_percent) for a lane."""
    if lanes_total <= 0:
        return 0.0, 100.0
    width = 100 / lanes_total
    return lane * width, width


def task_colors(task: ScheduledTask) -> tuple[str, str]:
    """(background, border)."""
    if task.is_travel:
        return TRAVEL_COLORS
    if task.completed:
        return COMPLETED_COLORS
    color = TASK_COLORS[abs(int(task.id)) % len(TASK_COLORS)]
    return color, color


def build_timeline(
    tasks: Sequence[ScheduledTask],
    *,
    px_per_minute: int = DEFAULT_PX_PER_MINUTE,
) -> Timeline:
    placed = assign_lanes(tasks)
    total = max((lane for _, lane in placed), default=-1) + 1

    slots: list[LaneSlot] = []
    for task, lane in placed:
        left, width = slot_geometry(lane, total)
        bg, border = task_colors(task)
        slots.append(
            LaneSlot(
                task=task,
                lane=lane,
                top_px=task.start_minute * px_per_minute,
                height_px=max(0, task.duration_minutes) * px_per_minute,
                left_percent=left,
                width_percent=width,
                background=bg,
                border=border,
            )
        )
    return Timeline(lane_count=total, slots=tuple(slots))


def max_overlap(tasks: Sequence[ScheduledTask]) -> int:
    """Largest number of tasks running at the same instant (half-open intervals)."""
    events: list[tuple[int, int]] = []
    for t in tasks:
        if t.duration_minutes <= 0:
            continue
        events.append((t.start_minute, 1))
        events.append((_end(t), -1))
    # ends sort before starts at the same minute: [a, b) and [b, c) do not overlap
    events.sort()
    best = cur = 0
    for _, delta in events:
        cur += delta
        best = max(best, cur)
    return best
