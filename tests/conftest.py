# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from timepilot.core.state import AppState
from timepilot.estimation.estimator import DurationEstimator
from timepilot.llm.offline import OfflineLLMClient
from timepilot.llm.oracle import LLMClassificationOracle
from timepilot.tasks.task_store import TaskStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment.
    """
    return SimpleNamespace(
        app_name="timepilot-test",
        user_id="u1",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        openrouter_api_key=None,
        openrouter_base_url="https://openrouter.ai/api/v1",
        llm_models=["test/model"],
        extra_headers={},
        history_limit=200,
        oracle_history_limit=40,
        local_top_n=12,
        estimate_timeout=5.0,
        px_per_minute=2,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """
    AppState wired with the offline oracle.

    NOTE: We keep a real SQLite TaskStore here because completions written by
    the shell feed the estimator, and that round trip is what we want to test.
    """
    llm = OfflineLLMClient()
    estimator = DurationEstimator.from_settings(settings, store, LLMClassificationOracle(llm))
    return AppState(settings=settings, llm=llm, task_store=store, estimator=estimator, user_id="u1")
