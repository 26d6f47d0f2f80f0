# src/timepilot/tasks/task_api.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.state import AppState
from ..tasks.task_models import EstimationSuggestion, ScheduledTask
from ..tasks.task_store import validate_task_fields
from ..timeline.layout import DEFAULT_PX_PER_MINUTE, Timeline, build_timeline

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AddedTask:
    task: ScheduledTask
    travel: ScheduledTask | None
    suggestion: EstimationSuggestion | None


def plan_travel_block(event: ScheduledTask, travel_minutes: int) -> ScheduledTask | None:
    """
    Unsaved (id=0) travel block that ends when `event` starts. It shares the
    event's category and location and is told apart by `is_travel`.

    Starts are clamped at midnight, so an early event gets a shorter lead-in
    block rather than one on the previous day.
    """
    minutes = int(travel_minutes)
    if minutes <= 0:
        return None
    start = max(0, event.start_minute - minutes)
    duration = event.start_minute - start
    if duration <= 0:
        return None
    return ScheduledTask(
        id=0,
        title=f"Travel to {event.title}",
        start_minute=start,
        duration_minutes=duration,
        category=event.category,
        location=event.location,
        day=event.day,
        is_travel=True,
        travel_minutes=minutes,
    )


def add_task(
    state: AppState,
    *,
    day: str,
    title: str,
    start_minute: int,
    duration_minutes: int,
    category: str = "general",
    location: str | None = None,
    travel_minutes: int | None = None,
    estimate: bool = True,
) -> AddedTask:
    """
    Create a task (plus its travel block when travel time is known) and,
    optionally, a duration suggestion.

    The event is validated before anything is written, and a stored travel
    block is removed again if the event insert fails, so a rejected task leaves
    the day plan untouched. The task is stored before the estimate runs; the
    estimate is bounded by `estimate_timeout`.
    """
    validate_task_fields(title, start_minute, duration_minutes)
    user_id = state.user_id
    travel: ScheduledTask | None = None

    if travel_minutes:
        draft = ScheduledTask(
            id=0,
            title=title,
            start_minute=start_minute,
            duration_minutes=duration_minutes,
            category=category,
            location=location,
            day=day,
        )
        block = plan_travel_block(draft, travel_minutes)
        if block is not None:
            travel = state.task_store.create_task(
                user_id=user_id,
                day=day,
                title=block.title,
                start_minute=block.start_minute,
                duration_minutes=block.duration_minutes,
                category=block.category,
                location=block.location,
                is_travel=True,
                travel_minutes=block.travel_minutes,
            )

    try:
        task = state.task_store.create_task(
            user_id=user_id,
            day=day,
            title=title,
            start_minute=start_minute,
            duration_minutes=duration_minutes,
            category=category,
            location=location,
        )
    except Exception:
        if travel is not None:
            logger.warning("Task insert failed; removing travel block id=%s", travel.id)
            state.task_store.delete_task(travel.id)
        raise

    suggestion = state.estimator.estimate_with_deadline(user_id, title, duration_minutes) if estimate else None
    if suggestion is not None:
        logger.info(
            "Suggestion for task_id=%s: %s -> %s minutes",
            task.id,
            duration_minutes,
            suggestion.suggested_minutes,
        )
    return AddedTask(task=task, travel=travel, suggestion=suggestion)


def complete_task(state: AppState, task_id: int, actual_minutes: int | None) -> ScheduledTask | None:
    task = state.task_store.complete_task(task_id, actual_minutes)
    if task is None:
        logger.info("complete_task: no task id=%s", task_id)
    return task


def day_timeline(state: AppState, day: str) -> Timeline:
    tasks = state.task_store.list_scheduled(state.user_id, day)
    px = int(getattr(state.settings, "px_per_minute", DEFAULT_PX_PER_MINUTE))
    return build_timeline(tasks, px_per_minute=px)
