# src/timepilot/estimation/similarity.py

"""
Cheap local title similarity.

Used by the estimator when no oracle is available (or it has nothing useful
to say): rank every past task against the new title and keep the best ones.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ..tasks.task_models import Candidate, HistoricalTask

_NON_WORD = re.compile(r"[^a-z0-9\s]")

# Loose (substring) matches must never outrank an exact token match.
LOOSE_MATCH_FACTOR = 0.75


def stem(word: str) -> str:
    """Very small suffix stripper: first matching rule wins."""
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("ing"):
        return word[:-3]
    if word.endswith("ed"):
        return word[:-2]
    if word.endswith("s"):
        return word[:-1]
    return word


def tokenize(text: str) -> list[str]:
    normalized = _NON_WORD.sub("", str(text or "").lower())
    return [stem(w) for w in normalized.split()]


def score(candidate_title: str, historical_title: str) -> float:
    a = tokenize(candidate_title)
    b = tokenize(historical_title)
    if not a or not b:
        return 0.0

    denom = max(len(a), len(b))
    common = set(a) & set(b)
    if common:
        return len(common) / denom

    # grocery vs groceries, run vs running, ...
    loose = sum(1 for w in a if any(w in x or x in w for x in b))
    if loose:
        return loose / denom * LOOSE_MATCH_FACTOR

    return 0.0


def rank_candidates(
    title: str,
    history: Iterable[HistoricalTask],
    *,
    limit: int = 12,
) -> list[Candidate]:
    """Score every past task against `title`; keep score > 0, best first."""
    scored = [Candidate(task=t, score=score(title, t.title or "")) for t in history]
    scored = [c for c in scored if c.score > 0]
    # sorted() is stable: equal scores keep history order (most recent first).
    scored = sorted(scored, key=lambda c: c.score, reverse=True)
    return scored[: max(0, int(limit))]
