# src/timepilot/estimation/estimator.py

"""
Duration estimator.

Given a new task title and the minutes the user typed, look at the user's
completed tasks and speak up only when the history clearly says the task
takes longer.

Flow:
- oracle path: ask the classification oracle which past tasks are similar;
- local path: fall back to token similarity (top N) when the oracle is absent,
  fails, or returns nothing usable;
- aggregate the chosen sample (IQR filter + recency-weighted median);
- surface only above the threshold.

Never raises to the caller: the worst outcome is "no suggestion".
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from ..core.ports import ClassificationOracle, TaskRepo
from ..tasks.task_models import (
    MINUTES_PER_DAY,
    EstimationSuggestion,
    HistoricalTask,
    OracleVerdict,
)
from .messages import default_message, first_minute_count, humanize_minute_mentions
from .similarity import rank_candidates
from .stats import AggregateResult, DurationSample, aggregate_samples, round_half_up

logger = logging.getLogger(__name__)

MIN_SURFACE_DELTA_MINUTES = 5
SURFACE_DELTA_RATIO = 0.2


def surfacing_threshold(proposed_minutes: int) -> int:
    """Aggregate must be strictly above this before a suggestion is shown."""
    return proposed_minutes + max(MIN_SURFACE_DELTA_MINUTES, round_half_up(proposed_minutes * SURFACE_DELTA_RATIO))


def should_surface(aggregate_minutes: int, proposed_minutes: int) -> bool:
    return aggregate_minutes > surfacing_threshold(proposed_minutes)


def coerce_minutes(value: object) -> float | None:
    """Positive finite minute count, or None for anything malformed."""
    if value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v) or v <= 0:
        return None
    return v


def plausible_minutes(value: object) -> int | None:
    v = coerce_minutes(value)
    if v is None or v > MINUTES_PER_DAY:
        return None
    return round_half_up(v)


def _sample(task: HistoricalTask) -> DurationSample | None:
    minutes = coerce_minutes(task.actual_minutes)
    if minutes is None:
        return None
    return DurationSample(minutes=minutes, completed_at=task.completed_at)


class DurationEstimator:
    def __init__(
        self,
        repo: TaskRepo,
        oracle: ClassificationOracle | None = None,
        *,
        history_limit: int = 200,
        oracle_history_limit: int = 40,
        top_n: int = 12,
        timeout: float = 12.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repo
        self._oracle = oracle
        self._history_limit = int(history_limit)
        self._oracle_history_limit = int(oracle_history_limit)
        self._top_n = int(top_n)
        self._timeout = float(timeout)
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_settings(cls, settings, repo: TaskRepo, oracle: ClassificationOracle | None = None) -> "DurationEstimator":
        return cls(
            repo,
            oracle,
            history_limit=int(getattr(settings, "history_limit", 200)),
            oracle_history_limit=int(getattr(settings, "oracle_history_limit", 40)),
            top_n=int(getattr(settings, "local_top_n", 12)),
            timeout=float(getattr(settings, "estimate_timeout", 12.0)),
        )

    # ---- public API ----

    def estimate(self, user_id: str, title: str, proposed_minutes: int) -> EstimationSuggestion | None:
        try:
            return self._estimate(user_id, title, proposed_minutes)
        except Exception:
            logger.exception("Estimate failed user=%s title=%r", user_id, title)
            return None

    async def estimate_async(
        self,
        user_id: str,
        title: str,
        proposed_minutes: int,
        *,
        timeout: float | None = None,
    ) -> EstimationSuggestion | None:
        """
        Run estimate() off the event loop with a deadline, so task creation
        never waits on a slow oracle.
        """
        limit = self._timeout if timeout is None else float(timeout)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.estimate, user_id, title, proposed_minutes),
                timeout=limit,
            )
        except TimeoutError:
            logger.info("Estimate timed out after %.1fs user=%s title=%r", limit, user_id, title)
            return None

    def estimate_with_deadline(
        self,
        user_id: str,
        title: str,
        proposed_minutes: int,
        *,
        timeout: float | None = None,
    ) -> EstimationSuggestion | None:
        """
        Blocking variant of estimate_async() for synchronous callers (the
        console shell): waits at most `timeout` seconds, then gives up. A late
        result is discarded; the daemon worker finishes in the background.
        """
        limit = self._timeout if timeout is None else float(timeout)
        result: list[EstimationSuggestion | None] = []

        def runner() -> None:
            result.append(self.estimate(user_id, title, proposed_minutes))

        worker = threading.Thread(target=runner, name="estimate", daemon=True)
        worker.start()
        worker.join(limit)
        if worker.is_alive() or not result:
            logger.info("Estimate timed out after %.1fs user=%s title=%r", limit, user_id, title)
            return None
        return result[0]

    # ---- internals ----

    def _estimate(self, user_id: str, title: str, proposed_minutes: int) -> EstimationSuggestion | None:
        if not user_id or not (title or "").strip():
            return None
        proposed = coerce_minutes(proposed_minutes)
        if proposed is None:
            logger.debug("Estimate skipped: invalid proposed minutes %r", proposed_minutes)
            return None
        proposed_int = round_half_up(proposed)

        history = self._load_history(user_id)
        if not history:
            return None

        decided, suggestion = self._oracle_path(title, proposed_int, history)
        if decided:
            return suggestion

        return self._local_path(title, proposed_int, history)

    def _load_history(self, user_id: str) -> list[HistoricalTask]:
        try:
            raw = self._repo.list_historical(user_id, limit=self._history_limit, newest_first=True)
        except Exception:
            logger.exception("Failed to load past tasks user=%s", user_id)
            return []
        usable = [t for t in raw if _sample(t) is not None]
        if len(usable) != len(raw):
            logger.debug("Skipped %d malformed history records", len(raw) - len(usable))
        return usable

    def _aggregate(self, tasks: Sequence[HistoricalTask]) -> AggregateResult | None:
        samples = [s for s in (_sample(t) for t in tasks) if s is not None]
        return aggregate_samples(samples, now=self._clock())

    def _oracle_path(
        self,
        title: str,
        proposed: int,
        history: list[HistoricalTask],
    ) -> tuple[bool, EstimationSuggestion | None]:
        """(decided, suggestion): decided=False means fall back to local similarity."""
        if self._oracle is None:
            return False, None

        listed = history[: self._oracle_history_limit]
        try:
            verdict = self._oracle.classify(title, proposed, listed)
        except Exception:
            logger.warning("Oracle classify failed; using local similarity.", exc_info=True)
            return False, None

        indices = _valid_indices(verdict, len(listed))
        if verdict is None or not indices:
            logger.debug("Oracle gave no usable similar tasks; using local similarity.")
            return False, None
        result = self._aggregate([listed[i] for i in indices])
        if result is None:
            return False, None

        logger.info(
            "Oracle path: family=%s similar=%d kept=%d aggregate=%d proposed=%d",
            verdict.family,
            len(indices),
            result.sample_size,
            result.minutes,
            proposed,
        )
        if not should_surface(result.minutes, proposed):
            return True, None

        suggested = plausible_minutes(verdict.suggested_minutes)
        return True, EstimationSuggestion(
            message=verdict.message or default_message(result.minutes, proposed),
            suggested_minutes=suggested if suggested is not None else result.minutes,
            sample_size=result.sample_size,
            aggregate_minutes=result.minutes,
            family=verdict.family,
            source="oracle",
        )

    def _local_path(self, title: str, proposed: int, history: list[HistoricalTask]) -> EstimationSuggestion | None:
        top = rank_candidates(title, history, limit=self._top_n)
        if not top:
            return None

        examples = [c.task for c in top]
        result = self._aggregate(examples)
        if result is None:
            return None

        logger.info(
            "Local path: candidates=%d kept=%d aggregate=%d proposed=%d",
            len(top),
            result.sample_size,
            result.minutes,
            proposed,
        )
        if not should_surface(result.minutes, proposed):
            return None

        text = self._phrase(title, proposed, result.minutes, examples)
        if not text:
            return EstimationSuggestion(
                message=default_message(result.minutes, proposed),
                suggested_minutes=result.minutes,
                sample_size=result.sample_size,
                aggregate_minutes=result.minutes,
                source="local",
            )

        suggested = plausible_minutes(first_minute_count(text))
        return EstimationSuggestion(
            message=humanize_minute_mentions(text.strip()),
            suggested_minutes=suggested if suggested is not None else result.minutes,
            sample_size=result.sample_size,
            aggregate_minutes=result.minutes,
            source="local",
        )

    def _phrase(self, title: str, proposed: int, aggregate_minutes: int, examples: list[HistoricalTask]) -> str | None:
        if self._oracle is None:
            return None
        try:
            text = self._oracle.phrase(title, proposed, aggregate_minutes, examples)
        except Exception:
            logger.warning("Oracle phrase failed; using template message.", exc_info=True)
            return None
        if not isinstance(text, str) or not text.strip():
            return None
        return text


def _valid_indices(verdict: OracleVerdict | None, size: int) -> list[int]:
    if verdict is None:
        return []
    out: list[int] = []
    for raw in verdict.similar_indices or []:
        if isinstance(raw, bool):
            continue
        try:
            idx = int(raw)
        except (TypeError, ValueError):
            continue
        if idx != raw or not (0 <= idx < size) or idx in out:
            continue
        out.append(idx)
    return out
