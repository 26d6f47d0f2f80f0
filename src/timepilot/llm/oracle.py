# src/timepilot/llm/oracle.py

"""
Classification oracle backed by an LLM client.

- classify(): label the new task's family and pick similar past tasks (JSON reply)
- phrase(): one friendly sentence about the estimate (free text reply)

Replies are parsed defensively: anything malformed becomes None, which the
estimator treats as "oracle unavailable".
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from ..core.ports import LLMClient
from ..tasks.task_models import HistoricalTask, OracleVerdict

logger = logging.getLogger(__name__)

CLASSIFY_SYSTEM_PROMPT = """
You are an assistant that groups tasks into families (e.g. grocery, workout, commute)
and finds past tasks similar to a new task.

You do NOT chat with the user.

Examples:
Title: Grocery shop for the week => family: grocery
Title: 1 hour gym session => family: workout
Title: Drive to office (commute) => family: commute

Return STRICT JSON only. No extra text. No Markdown. Keys:
- family: string or null
- similar_indices: array of indices from the past task list
- avg_actual: number or null
- suggested_duration: number of minutes or null
- message: string or null

If no past task is similar, return similar_indices: [] and message: null.

The message must be one short, friendly sentence that mentions the typical actual
time and the user's estimate, e.g.:
"When you did this it typically took about 45 minutes (you estimated 20 minutes). Consider increasing your estimate."
""".strip()

PHRASE_SYSTEM_PROMPT = """
You are an assistant that helps users estimate task durations.

Given a new task, the user's estimate and similar past tasks, write a short,
friendly, non-judgmental suggestion when the estimate seems low, optionally with
a more realistic duration in minutes.

Use this style when suggesting a number:
"When you did this it typically took about X minutes (you estimated Y minutes). Consider increasing your estimate."

Reply with the sentence only.
""".strip()


def _fmt_minutes(v: float | None) -> str:
    try:
        return f"{float(v):g}m"  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "N/A"


def _format_history(history: Sequence[HistoricalTask]) -> str:
    return "\n".join(
        f"{i}: {t.title} - estimated {_fmt_minutes(t.estimated_minutes)}, actual {_fmt_minutes(t.actual_minutes)}"
        for i, t in enumerate(history)
    )


def extract_json_object(raw: str) -> str:
    """Largest {...} span of `raw` (first '{' to last '}'), or `raw` itself."""
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first: last + 1]
    return raw


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return _as_int(float(value.strip()))
        except ValueError:
            return None
    return None


def _as_minutes(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if v != v or v <= 0:
        return None
    return int(round(v))


def parse_verdict(raw: str | None) -> OracleVerdict | None:
    """Parse a classify reply. None when it is not a JSON object."""
    raw = (raw or "").strip()
    if not raw:
        return None

    try:
        data = json.loads(raw)
    except ValueError:
        try:
            data = json.loads(extract_json_object(raw))
        except ValueError:
            logger.info("Oracle reply is not valid JSON. Raw=%r", raw[:500])
            return None

    if not isinstance(data, dict):
        return None

    raw_indices = data.get("similar_indices", data.get("similarIndices", []))
    indices: list[int] = []
    if isinstance(raw_indices, list):
        for item in raw_indices:
            idx = _as_int(item)
            if idx is not None and idx >= 0:
                indices.append(idx)

    family = data.get("family")
    message = data.get("message")
    suggested = data.get("suggested_duration", data.get("suggestedDuration", data.get("suggested_minutes")))

    return OracleVerdict(
        family=(str(family).strip() or None) if family is not None else None,
        similar_indices=indices,
        suggested_minutes=_as_minutes(suggested),
        message=(message.strip() or None) if isinstance(message, str) else None,
    )


class LLMClassificationOracle:
    """ClassificationOracle over any LLMClient (network-backed or offline)."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    def _ask(self, user_message: str, system_prompt: str) -> str:
        raw = ""
        for piece in self._llm.stream_chat([{"role": "user", "content": user_message}], system_prompt):
            raw += piece
        return raw.strip()

    def classify(self, title: str, minutes: int, history: Sequence[HistoricalTask]) -> OracleVerdict | None:
        if not history:
            return None

        user_message = (
            "User's new task:\n"
            f"Title: {title}\n"
            f"Estimated: {minutes} minutes\n\n"
            "Past completed tasks for this user (index: title - estimated, actual):\n"
            f"{_format_history(history)}"
        )

        try:
            raw = self._ask(user_message, CLASSIFY_SYSTEM_PROMPT)
        except Exception:
            logger.warning("Oracle classify call failed.", exc_info=True)
            return None

        logger.debug("Oracle classify raw=%r", raw[:2000])
        verdict = parse_verdict(raw)
        if verdict is not None:
            logger.debug(
                "Oracle verdict family=%s similar=%s suggested=%s",
                verdict.family,
                verdict.similar_indices,
                verdict.suggested_minutes,
            )
        return verdict

    def phrase(
        self,
        title: str,
        minutes: int,
        aggregate_minutes: int,
        examples: Sequence[HistoricalTask],
    ) -> str | None:
        lines = [
            "The user proposes a new task:",
            f"Title: {title}",
            f"Estimated duration: {minutes} minutes",
            f"Typical actual duration of similar tasks: {aggregate_minutes} minutes",
            "",
            "Similar past tasks:",
        ]
        lines.extend(
            f"Title: {t.title} - estimated {_fmt_minutes(t.estimated_minutes)}, actual {_fmt_minutes(t.actual_minutes)}"
            for t in examples
        )

        try:
            text = self._ask("\n".join(lines), PHRASE_SYSTEM_PROMPT)
        except Exception:
            logger.warning("Oracle phrase call failed.", exc_info=True)
            return None
        return text or None
