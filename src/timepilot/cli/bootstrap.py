# src/timepilot/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store, LLM oracle, estimator).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..estimation.estimator import DurationEstimator
from ..llm.client import OpenRouterLLMClient, friendly_llm_error_message
from ..llm.offline import OfflineLLMClient
from ..llm.oracle import LLMClassificationOracle
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_llm_client(settings) -> LLMClient:
    try:
        return OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # No key / no models: estimates still work through local similarity.
        logger.info("Oracle disabled: %s", friendly_llm_error_message(e))
        return OfflineLLMClient()


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm = create_llm_client(settings)
    store = TaskStore(settings.tasks_db_path)
    estimator = DurationEstimator.from_settings(settings, store, LLMClassificationOracle(llm))

    return AppState(
        settings=settings,
        llm=llm,
        task_store=store,
        estimator=estimator,
        user_id=str(getattr(settings, "user_id", "local") or "local"),
    )
