# tests/fakes.py

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence

from timepilot.core.ports import ChatMessage
from timepilot.tasks.task_models import HistoricalTask, OracleVerdict


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text as a single chunk
    """

    def __init__(self, next_text: str = "ok") -> None:
        self.next_text = next_text
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        yield self.next_text


class StubOracle:
    """
    Deterministic ClassificationOracle.

    verdict/phrase_text are returned as-is; `error` makes both methods raise.
    """

    def __init__(
        self,
        verdict: OracleVerdict | None = None,
        phrase_text: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self.verdict = verdict
        self.phrase_text = phrase_text
        self.error = error
        self.classify_calls: list[tuple[str, int, list[HistoricalTask]]] = []
        self.phrase_calls: list[tuple[str, int, int, list[HistoricalTask]]] = []

    def classify(self, title: str, minutes: int, history: Sequence[HistoricalTask]) -> OracleVerdict | None:
        self.classify_calls.append((title, minutes, list(history)))
        if self.error is not None:
            raise self.error
        return self.verdict

    def phrase(
        self,
        title: str,
        minutes: int,
        aggregate_minutes: int,
        examples: Sequence[HistoricalTask],
    ) -> str | None:
        self.phrase_calls.append((title, minutes, aggregate_minutes, list(examples)))
        if self.error is not None:
            raise self.error
        return self.phrase_text


class FakeTaskRepo:
    """
    In-memory history source for estimator tests.

    Only the read side the estimator uses is implemented.
    """

    def __init__(
        self,
        history: list[HistoricalTask] | None = None,
        *,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.history = list(history or [])
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, int, bool]] = []

    def list_historical(self, user_id: str, limit: int = 200, newest_first: bool = True) -> list[HistoricalTask]:
        self.calls.append((user_id, limit, newest_first))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.history[:limit]


def past(title: str, actual: object, estimated: object = 30, completed_at: object = None) -> HistoricalTask:
    return HistoricalTask(
        title=title,
        estimated_minutes=estimated,  # type: ignore[arg-type]
        actual_minutes=actual,  # type: ignore[arg-type]
        completed_at=completed_at,  # type: ignore[arg-type]
    )
