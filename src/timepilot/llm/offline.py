# src/timepilot/llm/offline.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Behavior:
    - Classifier prompts -> JSON with no similar tasks (estimator uses local similarity)
    - Phrasing prompts -> nothing (estimator uses its template message)
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()

        if "groups tasks into families" in sp:
            yield '{"family": null, "similar_indices": [], "suggested_duration": null, "message": null}'
            return

        # Phrasing: yield nothing, the caller falls back to a templated message.
        return
