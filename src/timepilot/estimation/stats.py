# src/timepilot/estimation/stats.py

"""
Robust statistics for duration estimates.

Pipeline used by the estimator:
  raw actual durations -> iqr_filter -> recency weights (filtered set) -> weighted_median

The constants here (1.5 * IQR fences, floor/ceil half split, 0.06/day decay)
are fixed behaviour. Changing any of them changes which suggestions users see.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from ..tasks.task_models import Timestamp

logger = logging.getLogger(__name__)

IQR_FENCE = 1.5
MIN_SAMPLES_FOR_IQR = 4
RECENCY_DECAY_PER_DAY = 0.06

_SECONDS_PER_DAY = 60 * 60 * 24


@dataclass(frozen=True, slots=True)
class DurationSample:
    minutes: float
    completed_at: Timestamp = None


@dataclass(frozen=True, slots=True)
class AggregateResult:
    minutes: int
    sample_size: int
    kept: tuple[DurationSample, ...]


def round_half_up(x: float) -> int:
    """Round .5 away from zero for positives (builtin round() is banker's rounding)."""
    return int(math.floor(x + 0.5))


def median(values: Sequence[float]) -> float | None:
    if not values:
        return None
    s = sorted(values)
    mid = len(s) // 2
    if len(s) % 2 == 0:
        return (s[mid - 1] + s[mid]) / 2
    return s[mid]


def iqr_bounds(values: Sequence[float]) -> tuple[float, float] | None:
    """Tukey fences, or None when there are too few values to estimate quartiles."""
    if len(values) < MIN_SAMPLES_FOR_IQR:
        return None
    s = sorted(values)
    n = len(s)
    q1 = median(s[: n // 2]) or 0.0
    q3 = median(s[math.ceil(n / 2):]) or 0.0
    iqr = q3 - q1
    return q1 - IQR_FENCE * iqr, q3 + IQR_FENCE * iqr


def iqr_filter(values: Sequence[float]) -> list[float]:
    """
    Drop values outside [Q1 - 1.5*IQR, Q3 + 1.5*IQR].

    Fewer than 4 values are returned unchanged (same order); otherwise the
    result is sorted ascending.
    """
    bounds = iqr_bounds(values)
    if bounds is None:
        return list(values)
    lower, upper = bounds
    return [v for v in sorted(values) if lower <= v <= upper]


def _to_epoch_seconds(ts: Timestamp) -> float | None:
    if ts is None:
        return None
    if isinstance(ts, datetime):
        dt = ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)
        return dt.timestamp()
    if isinstance(ts, bool):
        return None
    if isinstance(ts, (int, float)):
        return float(ts) if math.isfinite(ts) else None
    s = str(ts).strip()
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.timestamp()


def recency_weight(
    completed_at: Timestamp,
    now: datetime | float | None = None,
    decay: float = RECENCY_DECAY_PER_DAY,
) -> float:
    """
    exp(-decay * days_since). A task from ~12 days ago counts about half as much
    as one from today. Missing or unparseable timestamps weigh 1.
    """
    then = _to_epoch_seconds(completed_at)
    if then is None:
        return 1.0
    if now is None:
        now_s = datetime.now(UTC).timestamp()
    elif isinstance(now, datetime):
        now_s = _to_epoch_seconds(now) or 0.0
    else:
        now_s = float(now)
    days_ago = (now_s - then) / _SECONDS_PER_DAY
    return math.exp(-decay * days_ago)


def weighted_median(values: Sequence[float], weights: Sequence[float]) -> float | None:
    """
    50th weighted percentile: the first value (ascending) whose cumulative
    weight reaches half the total. Not interpolated. Missing weights count as 1.
    """
    if not values:
        return None
    pairs = [(v, weights[i] if i < len(weights) else 1.0) for i, v in enumerate(values)]
    pairs.sort(key=lambda p: p[0])
    half = sum(w for _, w in pairs) / 2
    cum = 0.0
    for v, w in pairs:
        cum += w
        if cum >= half:
            return v
    return pairs[-1][0]


def aggregate(values: Sequence[float], weights: Sequence[float] | None = None) -> float | None:
    """Weighted central estimate; uniform weights when none are given."""
    return weighted_median(values, list(weights) if weights is not None else [])


def aggregate_samples(
    samples: Sequence[DurationSample],
    *,
    now: datetime | float | None = None,
) -> AggregateResult | None:
    """
    Full pipeline over raw samples. None means "no estimate" (abstain),
    never zero.
    """
    if not samples:
        return None

    bounds = iqr_bounds([s.minutes for s in samples])
    if bounds is None:
        kept = list(samples)
    else:
        lower, upper = bounds
        kept = [s for s in samples if lower <= s.minutes <= upper]
    if not kept:
        return None

    weights = [recency_weight(s.completed_at, now) for s in kept]
    center = aggregate([s.minutes for s in kept], weights)
    if center is None:
        return None

    logger.debug(
        "aggregate: raw=%d kept=%d center=%.2f bounds=%s",
        len(samples),
        len(kept),
        center,
        bounds,
    )
    return AggregateResult(minutes=round_half_up(center), sample_size=len(kept), kept=tuple(kept))
