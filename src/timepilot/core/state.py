# src/timepilot/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..estimation.estimator import DurationEstimator
from .ports import LLMClient, TaskRepo


@dataclass
class AppState:
    # Settings object (real Settings or a SimpleNamespace in tests).
    settings: object

    llm: LLMClient
    task_store: TaskRepo
    estimator: DurationEstimator

    user_id: str = "local"
