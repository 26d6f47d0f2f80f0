# src/timepilot/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The estimator and the layout engine depend on Protocols instead of concrete
implementations. This keeps storage and LLM providers swappable and makes
testing easier.
"""

from typing import Any, Iterable, Protocol, Sequence

from ..tasks.task_models import HistoricalTask, OracleVerdict, ScheduledTask

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class ClassificationOracle(Protocol):
    """
    Optional text-understanding service.

    Both methods return None when the oracle is unavailable or its reply is not
    usable. Implementations may raise; the estimator treats that as unavailable.
    """

    def classify(
            self,
            title: str,
            minutes: int,
            history: Sequence[HistoricalTask],
    ) -> OracleVerdict | None: ...

    def phrase(
            self,
            title: str,
            minutes: int,
            aggregate_minutes: int,
            examples: Sequence[HistoricalTask],
    ) -> str | None: ...


class TaskRepo(Protocol):
    # Estimator API
    def list_historical(
            self,
            user_id: str,
            limit: int = 200,
            newest_first: bool = True,
    ) -> list[HistoricalTask]: ...

    # Day view API
    def list_scheduled(self, user_id: str, day: str) -> list[ScheduledTask]: ...
    def list_days_with_tasks(self, user_id: str) -> set[str]: ...

    def create_task(
            self,
            *,
            user_id: str,
            day: str,
            title: str,
            start_minute: int,
            duration_minutes: int,
            category: str = "general",
            location: str | None = None,
            is_travel: bool = False,
            travel_minutes: int | None = None,
    ) -> ScheduledTask: ...

    def update_task(self, task_id: int, **fields: Any) -> ScheduledTask | None: ...
    def delete_task(self, task_id: int) -> None: ...
    def complete_task(self, task_id: int, actual_minutes: int | None) -> ScheduledTask | None: ...
