# src/timepilot/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from datetime import date
from typing import cast

from ..core.state import AppState
from ..estimation.messages import format_minutes
from ..tasks.task_api import add_task, complete_task, day_timeline
from ..tasks.task_models import format_hhmm, parse_hhmm

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CommandRegistry:
    """Simple slash-command registry used by the console shell (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _today() -> str:
    return date.today().isoformat()


def _take_day(args: list[str]) -> tuple[str, list[str]]:
    if args and _DAY_RE.match(args[0]):
        return args[0], args[1:]
    return _today(), args


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    oracle = "offline" if state.llm.__class__.__name__ == "OfflineLLMClient" else "online"
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  User: {state.user_id}\n"
        f"  Oracle: {oracle}\n"
        f"  Models (priority -> fallback): {models}"
    )


def cmd_day(state: AppState, args: list[str]) -> str:
    """
    /day              -> today's timeline
    /day YYYY-MM-DD   -> that day's timeline
    """
    day, _ = _take_day(args)
    timeline = day_timeline(state, day)
    if not timeline.slots:
        return f"No tasks on {day}."

    lines = [f"{day} ({timeline.lane_count} lane{'s' if timeline.lane_count != 1 else ''}):"]
    for slot in timeline.slots:
        t = slot.task
        flags = []
        if t.completed:
            flags.append("done")
        if t.is_travel:
            flags.append("travel")
        flag_str = f" [{', '.join(flags)}]" if flags else ""
        lines.append(
            f"  lane {slot.lane} @{slot.left_percent:.0f}%: "
            f"{format_hhmm(t.start_minute)}-{format_hhmm(t.end_minute)} #{t.id} {t.title}{flag_str}"
        )
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add [YYYY-MM-DD] HH:MM minutes title...
    """
    usage = "Usage: /add [YYYY-MM-DD] HH:MM minutes title..."
    day, rest = _take_day(args)
    if len(rest) < 3:
        return usage
    try:
        start = parse_hhmm(rest[0])
        minutes = int(rest[1])
    except ValueError:
        return usage
    title = " ".join(rest[2:])

    if emit:
        emit("Checking your history...")

    try:
        added = add_task(state, day=day, title=title, start_minute=start, duration_minutes=minutes)
    except ValueError as e:
        return f"Cannot add task: {e}"

    reply = f"Added #{added.task.id} {title} at {format_hhmm(start)} for {format_minutes(minutes)}."
    if added.suggestion is not None:
        reply += f"\nTip: {added.suggestion.message}"
    return reply


def cmd_done(state: AppState, args: list[str]) -> str:
    """
    /done id [actual_minutes]
    """
    if not args:
        return "Usage: /done id [actual_minutes]"
    try:
        task_id = int(args[0])
        actual = int(args[1]) if len(args) > 1 else None
    except ValueError:
        return "Usage: /done id [actual_minutes]"

    task = complete_task(state, task_id, actual)
    if task is None:
        return f"No task #{task_id}."
    if actual:
        return f"Done #{task_id} {task.title} (took {format_minutes(actual)})."
    return f"Done #{task_id} {task.title}."


def cmd_del(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del id"
    try:
        task_id = int(args[0])
    except ValueError:
        return "Usage: /del id"
    state.task_store.delete_task(task_id)
    logger.debug("Task deleted id=%s", task_id)
    return f"Deleted #{task_id}."


def cmd_estimate(state: AppState, args: list[str]) -> str:
    """
    /estimate minutes title...
    """
    if len(args) < 2:
        return "Usage: /estimate minutes title..."
    try:
        minutes = int(args[0])
    except ValueError:
        return "Usage: /estimate minutes title..."
    title = " ".join(args[1:])

    suggestion = state.estimator.estimate_with_deadline(state.user_id, title, minutes)
    if suggestion is None:
        return f"No suggestion: {format_minutes(minutes)} looks fine."
    return (
        f"{suggestion.message}\n"
        f"  suggested: {suggestion.suggested_minutes} min, "
        f"aggregate: {suggestion.aggregate_minutes} min, samples: {suggestion.sample_size}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current user and oracle mode.")
registry.register("day", cmd_day, help_text="Show a day's timeline: /day [YYYY-MM-DD].")
registry.register("add", cmd_add, help_text="Add a task: /add [YYYY-MM-DD] HH:MM minutes title.")
registry.register("done", cmd_done, help_text="Complete a task: /done id [actual_minutes].")
registry.register("del", cmd_del, help_text="Delete a task: /del id.", aliases=["rm"])
registry.register("estimate", cmd_estimate, help_text="Check an estimate: /estimate minutes title.")
