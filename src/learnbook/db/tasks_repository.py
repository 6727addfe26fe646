"""Repository functions for daily study tasks (the to-do list)."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from learnbook.db.database import get_db, new_id, now_iso

logger = structlog.get_logger(__name__)

TASK_TYPES = ("study", "revision", "practice")


@dataclass
class TaskRecord:
    """Study task from database."""

    id: str
    user_id: str
    chapter_id: str | None
    task_date: str
    task_type: str
    task_description: str | None
    duration_minutes: int
    time_slot: str | None
    completed: bool
    skipped: bool
    created_at: str


def _row_to_record(row) -> TaskRecord:
    return TaskRecord(
        id=row["id"],
        user_id=row["user_id"],
        chapter_id=row["chapter_id"],
        task_date=row["task_date"],
        task_type=row["task_type"],
        task_description=row["task_description"],
        duration_minutes=row["duration_minutes"],
        time_slot=row["time_slot"],
        completed=bool(row["completed"]),
        skipped=bool(row["skipped"]),
        created_at=row["created_at"],
    )


def get_task(task_id: str) -> TaskRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM daily_tasks WHERE id = ?", (task_id,)).fetchone()

    return _row_to_record(row) if row else None


def list_tasks(user_id: str, task_date: str) -> list[TaskRecord]:
    """Tasks of a user for one day, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM daily_tasks
            WHERE user_id = ? AND task_date = ?
            ORDER BY created_at, rowid
            """,
            (user_id, task_date),
        ).fetchall()

    return [_row_to_record(r) for r in rows]


def add_task(
    user_id: str,
    task_date: str,
    task_description: str | None,
    task_type: str = "study",
    duration_minutes: int = 30,
    time_slot: str | None = None,
    chapter_id: str | None = None,
) -> TaskRecord:
    """Insert a pending task.

    Raises:
        ValueError: If task_type is unknown
    """
    if task_type not in TASK_TYPES:
        raise ValueError(f"Unknown task type: {task_type}")

    task_id = new_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO daily_tasks (
                id, user_id, chapter_id, task_date, task_type,
                task_description, duration_minutes, time_slot
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task_id,
                user_id,
                chapter_id,
                task_date,
                task_type,
                task_description,
                duration_minutes,
                time_slot,
            ),
        )

    logger.debug("tasks.inserted", user_id=user_id, task_id=task_id)
    task = get_task(task_id)
    if task is None:
        raise RuntimeError(f"Task {task_id!r} missing after insert")
    return task


def toggle_task(user_id: str, task_id: str, completed: bool) -> bool:
    """Set the completed flag of a user's task."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE daily_tasks SET completed = ?, updated_at = ? WHERE id = ? AND user_id = ?",
            (int(completed), now_iso(), task_id, user_id),
        )

    return cursor.rowcount > 0


def delete_task(user_id: str, task_id: str) -> bool:
    """Delete a user's task."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM daily_tasks WHERE id = ? AND user_id = ?",
            (task_id, user_id),
        )

    return cursor.rowcount > 0
