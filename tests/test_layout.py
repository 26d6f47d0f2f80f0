# tests/test_layout.py

from __future__ import annotations

import random

import pytest

from timepilot.tasks.task_models import ScheduledTask
from timepilot.timeline.layout import (
    COMPLETED_COLORS,
    TASK_COLORS,
    TRAVEL_COLORS,
    build_timeline,
    lane_count,
    layout,
    max_overlap,
    slot_geometry,
    task_colors,
)


def _task(task_id: int, start: int, duration: int, **kw) -> ScheduledTask:
    return ScheduledTask(id=task_id, title=f"t{task_id}", start_minute=start, duration_minutes=duration, **kw)


def test_overlapping_tasks_get_separate_lanes() -> None:
    a = _task(1, 540, 60)  # 09:00-10:00
    b = _task(2, 570, 60)  # 09:30-10:30
    c = _task(3, 600, 30)  # 10:00-10:30

    lanes = layout([a, b, c])

    assert lanes == {1: 0, 2: 1, 3: 0}
    assert lane_count(lanes) == 2


def test_empty_day() -> None:
    assert layout([]) == {}
    assert lane_count({}) == 0
    timeline = build_timeline([])
    assert timeline.lane_count == 0
    assert timeline.slots == ()


def test_back_to_back_tasks_share_a_lane() -> None:
    lanes = layout([_task(1, 60, 30), _task(2, 90, 30), _task(3, 120, 30)])
    assert set(lanes.values()) == {0}


def test_input_order_does_not_matter_for_distinct_starts() -> None:
    tasks = [_task(1, 540, 60), _task(2, 570, 60), _task(3, 600, 30)]
    assert layout(list(reversed(tasks))) == layout(tasks)


def test_same_start_keeps_input_order() -> None:
    lanes = layout([_task(7, 60, 30), _task(3, 60, 30), _task(5, 60, 30)])
    assert lanes == {7: 0, 3: 1, 5: 2}


def test_zero_duration_task_still_gets_a_lane() -> None:
    lanes = layout([_task(1, 60, 0), _task(2, 60, 30)])
    assert lanes == {1: 0, 2: 0}


def _overlaps(a: ScheduledTask, b: ScheduledTask) -> bool:
    return a.start_minute < b.end_minute and b.start_minute < a.end_minute


def _brute_force_max_overlap(tasks: list[ScheduledTask]) -> int:
    best = 0
    for t in tasks:
        best = max(best, sum(1 for u in tasks if u.start_minute <= t.start_minute < u.end_minute))
    return best


@pytest.mark.parametrize("seed", range(25))
def test_random_days_are_packed_tightly(seed: int) -> None:
    rng = random.Random(seed)
    tasks = [_task(i, rng.randrange(0, 1380), rng.randrange(5, 180)) for i in range(rng.randrange(1, 40))]

    lanes = layout(tasks)

    assert set(lanes) == {t.id for t in tasks}
    by_id = {t.id: t for t in tasks}
    for a_id, a_lane in lanes.items():
        for b_id, b_lane in lanes.items():
            if a_id < b_id and a_lane == b_lane:
                assert not _overlaps(by_id[a_id], by_id[b_id])

    expected = _brute_force_max_overlap(tasks)
    assert lane_count(lanes) == expected
    assert max_overlap(tasks) == expected


def test_max_overlap_ignores_empty_tasks_and_touching_edges() -> None:
    assert max_overlap([]) == 0
    assert max_overlap([_task(1, 60, 0)]) == 0
    assert max_overlap([_task(1, 60, 30), _task(2, 90, 30)]) == 1
    assert max_overlap([_task(1, 60, 31), _task(2, 90, 30)]) == 2


def test_slot_geometry() -> None:
    assert slot_geometry(0, 1) == (0.0, 100.0)
    assert slot_geometry(1, 2) == (50.0, 50.0)
    assert slot_geometry(2, 4) == (50.0, 25.0)
    assert slot_geometry(0, 0) == (0.0, 100.0)


def test_timeline_uses_day_wide_lane_count() -> None:
    tasks = [_task(1, 540, 60), _task(2, 570, 60), _task(3, 900, 30)]

    timeline = build_timeline(tasks, px_per_minute=2)

    assert timeline.lane_count == 2
    assert timeline.lanes() == {1: 0, 2: 1, 3: 0}
    afternoon = timeline.slots[2]
    assert afternoon.task.id == 3
    # nothing overlaps it, but the slot is still half wide
    assert afternoon.width_percent == 50.0
    assert afternoon.left_percent == 0.0
    assert afternoon.top_px == 1800
    assert afternoon.height_px == 60


def test_task_colors() -> None:
    assert task_colors(_task(1, 0, 10, is_travel=True)) == TRAVEL_COLORS
    assert task_colors(_task(1, 0, 10, completed=True)) == COMPLETED_COLORS
    assert task_colors(_task(1, 0, 10, is_travel=True, completed=True)) == TRAVEL_COLORS
    bg, border = task_colors(_task(8, 0, 10))
    assert bg == border == TASK_COLORS[8 % len(TASK_COLORS)]
