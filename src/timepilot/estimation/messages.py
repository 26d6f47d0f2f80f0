# src/timepilot/estimation/messages.py

from __future__ import annotations

import re

_MINUTE_MENTION = re.compile(r"(\d{1,5})\s*(minutes|minute|mins|min|m)\b", re.IGNORECASE)
_SUGGESTED_MINUTES = re.compile(r"(\d{1,4})\s*(minutes|mins|m)\b", re.IGNORECASE)


def format_minutes(mins: float | None) -> str:
    """95 -> '1 hour and 35 minutes'."""
    if mins is None or mins != mins:
        return "0 minutes"
    m = int(round(mins))
    hours, minutes = divmod(max(0, m), 60)
    parts: list[str] = []
    if hours > 0:
        parts.append("1 hour" if hours == 1 else f"{hours} hours")
    if minutes > 0:
        parts.append("1 minute" if minutes == 1 else f"{minutes} minutes")
    if not parts:
        return "0 minutes"
    return " and ".join(parts)


def humanize_minute_mentions(text: str) -> str:
    """Rewrite '90 minutes' / '90m' in free text as '1 hour and 30 minutes'."""
    if not text:
        return text
    return _MINUTE_MENTION.sub(lambda m: format_minutes(int(m.group(1))), text)


def first_minute_count(text: str | None) -> int | None:
    if not text:
        return None
    m = _SUGGESTED_MINUTES.search(text)
    return int(m.group(1)) if m else None


def default_message(aggregate_minutes: int, proposed_minutes: int) -> str:
    return (
        f"When you did this it typically took about {format_minutes(aggregate_minutes)} "
        f"(you estimated {format_minutes(proposed_minutes)}). Consider increasing your estimate."
    )
