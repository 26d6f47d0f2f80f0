# src/timepilot/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from .task_models import MINUTES_PER_DAY, HistoricalTask, ScheduledTask

logger = logging.getLogger(__name__)

_UPDATABLE = {
    "title": "title",
    "start_minute": "start_minute",
    "duration_minutes": "duration_minutes",
    "completed": "completed",
    "category": "category",
    "location": "location",
    "actual_minutes": "actual_minutes",
    "is_travel": "is_travel",
    "travel_minutes": "travel_minutes",
}


def validate_task_fields(title: str, start_minute: int, duration_minutes: int) -> None:
    """Raise ValueError for anything the day plan cannot hold."""
    if not title or not title.strip():
        raise ValueError("title is required")
    if not (0 <= int(start_minute) < MINUTES_PER_DAY):
        raise ValueError(f"start_minute must be in [0, {MINUTES_PER_DAY}), got {start_minute}")
    if int(duration_minutes) <= 0:
        raise ValueError(f"duration_minutes must be > 0, got {duration_minutes}")


class TaskStore:
    """
    SQLite task store.

    Two tables:
    - scheduled_tasks: the day plan (mutable: edit, complete, delete)
    - task_completions: completion history read by the estimator

    History holds at most one row per completed scheduled task; completing
    the same task again replaces that row.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS scheduled_tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    day TEXT NOT NULL,
                    title TEXT NOT NULL,
                    start_minute INTEGER NOT NULL,
                    duration_minutes INTEGER NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    category TEXT NOT NULL DEFAULT 'general',
                    location TEXT,
                    actual_minutes INTEGER,
                    is_travel INTEGER NOT NULL DEFAULT 0,
                    travel_minutes INTEGER,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_completions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    task_id INTEGER,
                    title TEXT NOT NULL,
                    estimated_minutes REAL,
                    actual_minutes REAL,
                    completed_at REAL
                )
                """
            )

            cur.execute("CREATE INDEX IF NOT EXISTS idx_sched_user_day ON scheduled_tasks(user_id, day)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_completions_user_time "
                "ON task_completions(user_id, completed_at)"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_completions_task ON task_completions(task_id)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> ScheduledTask:
        return ScheduledTask(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            start_minute=int(row["start_minute"] or 0),
            duration_minutes=int(row["duration_minutes"] or 0),
            completed=bool(row["completed"]),
            category=str(row["category"] or "general"),
            location=row["location"],
            day=row["day"],
            actual_minutes=int(row["actual_minutes"]) if row["actual_minutes"] is not None else None,
            is_travel=bool(row["is_travel"]),
            travel_minutes=int(row["travel_minutes"]) if row["travel_minutes"] is not None else None,
        )

    # ---- public API ----

    def get_task(self, task_id: int) -> ScheduledTask | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM scheduled_tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def create_task(
        self,
        *,
        user_id: str,
        day: str,
        title: str,
        start_minute: int,
        duration_minutes: int,
        category: str = "general",
        location: str | None = None,
        is_travel: bool = False,
        travel_minutes: int | None = None,
    ) -> ScheduledTask:
        if not user_id:
            raise ValueError("user_id is required")
        validate_task_fields(title, start_minute, duration_minutes)

        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO scheduled_tasks(
                    user_id, day, title, start_minute, duration_minutes,
                    completed, category, location, actual_minutes,
                    is_travel, travel_minutes, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, 0, ?, ?, NULL, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    day,
                    title.strip(),
                    int(start_minute),
                    int(duration_minutes),
                    (category or "general").strip(),
                    location,
                    int(bool(is_travel)),
                    travel_minutes,
                    now,
                    now,
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for scheduled_tasks insert")
            logger.debug("Task added id=%s day=%s start=%s duration=%s", rowid, day, start_minute, duration_minutes)
        finally:
            conn.close()

        task = self.get_task(int(rowid))
        if task is None:
            raise RuntimeError(f"Task {rowid} vanished right after insert")
        return task

    def update_task(self, task_id: int, **fields: Any) -> ScheduledTask | None:
        unknown = set(fields) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"unknown task fields: {sorted(unknown)}")

        current = self.get_task(task_id)
        if current is None:
            return None
        validate_task_fields(
            str(fields.get("title", current.title)),
            int(fields.get("start_minute", current.start_minute)),
            int(fields.get("duration_minutes", current.duration_minutes)),
        )

        sets: list[str] = []
        params: list[Any] = []
        for name, value in fields.items():
            if name in {"completed", "is_travel"}:
                value = int(bool(value))
            sets.append(f"{_UPDATABLE[name]} = ?")
            params.append(value)

        if not sets:
            return current

        sets.append("updated_at = ?")
        params.append(time.time())
        params.append(int(task_id))

        conn = self._get_conn()
        try:
            conn.execute(f"UPDATE scheduled_tasks SET {', '.join(sets)} WHERE id = ?", params)
            conn.commit()
        finally:
            conn.close()
        return self.get_task(task_id)

    def delete_task(self, task_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM scheduled_tasks WHERE id = ?", (int(task_id),))
            conn.commit()
        finally:
            conn.close()

    def complete_task(self, task_id: int, actual_minutes: int | None) -> ScheduledTask | None:
        """
        Mark a task done. A positive actual duration also becomes the task's
        single history row; completing again (e.g. to correct the time)
        replaces that row instead of adding a second sample.
        """
        task = self.get_task(task_id)
        if task is None:
            return None

        now = time.time()
        actual = int(actual_minutes) if actual_minutes is not None and int(actual_minutes) > 0 else None

        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE scheduled_tasks SET completed = 1, actual_minutes = ?, updated_at = ? WHERE id = ?",
                (actual, now, int(task_id)),
            )
            replaced = conn.execute("DELETE FROM task_completions WHERE task_id = ?", (int(task_id),)).rowcount
            if replaced:
                logger.debug("Replacing %d history row(s) for task id=%s", replaced, task_id)
            if actual is not None:
                owner = conn.execute(
                    "SELECT user_id FROM scheduled_tasks WHERE id = ?", (int(task_id),)
                ).fetchone()
                conn.execute(
                    """
                    INSERT INTO task_completions(user_id, task_id, title, estimated_minutes, actual_minutes, completed_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (owner["user_id"], int(task_id), task.title, task.duration_minutes, actual, now),
                )
            conn.commit()
        finally:
            conn.close()

        logger.info("Task completed id=%s actual=%s", task_id, actual)
        return self.get_task(task_id)

    def record_completion(
        self,
        *,
        user_id: str,
        title: str,
        estimated_minutes: float | None,
        actual_minutes: float | None,
        completed_at: float | None = None,
    ) -> None:
        """Append a history record directly (imports, backfills)."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO task_completions(user_id, task_id, title, estimated_minutes, actual_minutes, completed_at)
                VALUES (?, NULL, ?, ?, ?, ?)
                """,
                (user_id, title, estimated_minutes, actual_minutes, completed_at),
            )
            conn.commit()
        finally:
            conn.close()

    def list_historical(self, user_id: str, limit: int = 200, newest_first: bool = True) -> list[HistoricalTask]:
        """Completed tasks with a recorded actual duration."""
        order = "DESC" if newest_first else "ASC"
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"""
                SELECT title, estimated_minutes, actual_minutes, completed_at
                FROM task_completions
                WHERE user_id = ?
                  AND actual_minutes IS NOT NULL
                ORDER BY completed_at {order}, id {order}
                    LIMIT ?
                """,
                (user_id, int(limit)),
            ).fetchall()
        finally:
            conn.close()
        return [
            HistoricalTask(
                title=str(r["title"] or ""),
                estimated_minutes=r["estimated_minutes"],
                actual_minutes=r["actual_minutes"],
                completed_at=r["completed_at"],
            )
            for r in rows
        ]

    def list_scheduled(self, user_id: str, day: str) -> list[ScheduledTask]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT *
                FROM scheduled_tasks
                WHERE user_id = ? AND day = ?
                ORDER BY start_minute ASC, id ASC
                """,
                (user_id, day),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def list_days_with_tasks(self, user_id: str) -> set[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT DISTINCT day FROM scheduled_tasks WHERE user_id = ?",
                (user_id,),
            ).fetchall()
            return {str(r["day"]) for r in rows}
        finally:
            conn.close()
