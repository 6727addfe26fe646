"""Repository functions for per-chapter progress and saved study notes."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import structlog

from learnbook.db.database import get_db, new_id, now_iso
from learnbook.db.subjects_repository import CHAPTER_STATUSES

logger = structlog.get_logger(__name__)


@dataclass
class ProgressRecord:
    """Progress of one user on one chapter."""

    id: str
    user_id: str
    chapter_id: str
    status: str
    completion_percentage: int
    time_spent: int
    last_studied: str | None
    notes: str | None
    updated_at: str


@dataclass
class SavedNotes:
    """Generated notes a user saved for a chapter."""

    id: str
    user_id: str
    chapter_id: str
    subject: str
    chapter_name: str
    notes_data: dict[str, Any]
    updated_at: str


def _row_to_record(row) -> ProgressRecord:
    return ProgressRecord(
        id=row["id"],
        user_id=row["user_id"],
        chapter_id=row["chapter_id"],
        status=row["status"],
        completion_percentage=row["completion_percentage"],
        time_spent=row["time_spent"],
        last_studied=row["last_studied"],
        notes=row["notes"],
        updated_at=row["updated_at"],
    )


def get_progress(user_id: str) -> list[ProgressRecord]:
    """All progress rows of a user."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM user_progress WHERE user_id = ? ORDER BY updated_at DESC",
            (user_id,),
        ).fetchall()

    return [_row_to_record(r) for r in rows]


def get_chapter_progress(user_id: str, chapter_id: str) -> ProgressRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM user_progress WHERE user_id = ? AND chapter_id = ?",
            (user_id, chapter_id),
        ).fetchone()

    return _row_to_record(row) if row else None


def update_progress(user_id: str, chapter_id: str, updates: dict[str, Any]) -> ProgressRecord:
    """Upsert progress for a (user, chapter) pair.

    Only status, completion_percentage, time_spent and notes are applied.

    Raises:
        ValueError: If status is not a known chapter status
    """
    status = updates.get("status")
    if status is not None and status not in CHAPTER_STATUSES:
        raise ValueError(f"Unknown progress status: {status}")

    allowed = ("status", "completion_percentage", "time_spent", "notes")
    values = {k: updates[k] for k in allowed if updates.get(k) is not None}
    if "completion_percentage" in values:
        values["completion_percentage"] = max(0, min(100, int(values["completion_percentage"])))

    now = now_iso()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO user_progress (id, user_id, chapter_id, last_studied, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, chapter_id) DO UPDATE SET
                last_studied = excluded.last_studied,
                updated_at = excluded.updated_at
            """,
            (new_id(), user_id, chapter_id, now, now),
        )
        if values:
            assignments = ", ".join(f"{k} = ?" for k in values)
            conn.execute(
                f"UPDATE user_progress SET {assignments} WHERE user_id = ? AND chapter_id = ?",
                (*values.values(), user_id, chapter_id),
            )

    logger.debug("progress.updated", user_id=user_id, chapter_id=chapter_id)
    record = get_chapter_progress(user_id, chapter_id)
    if record is None:
        raise RuntimeError(f"Progress for chapter {chapter_id!r} missing after upsert")
    return record


def mark_complete(user_id: str, chapter_id: str) -> ProgressRecord:
    """Mark a chapter completed at 100%."""
    return update_progress(
        user_id,
        chapter_id,
        {"status": "completed", "completion_percentage": 100},
    )


def save_notes(
    user_id: str,
    chapter_id: str,
    subject: str,
    chapter_name: str,
    notes_data: dict[str, Any],
) -> SavedNotes:
    """Save generated notes, replacing any earlier save for the chapter."""
    now = now_iso()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO saved_notes (
                id, user_id, chapter_id, subject, chapter_name, notes_data, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, chapter_id) DO UPDATE SET
                subject = excluded.subject,
                chapter_name = excluded.chapter_name,
                notes_data = excluded.notes_data,
                updated_at = excluded.updated_at
            """,
            (new_id(), user_id, chapter_id, subject, chapter_name, json.dumps(notes_data), now),
        )

    logger.debug("notes.saved", user_id=user_id, chapter_id=chapter_id)
    saved = get_notes(user_id, chapter_id)
    if saved is None:
        raise RuntimeError(f"Notes for chapter {chapter_id!r} missing after save")
    return saved


def get_notes(user_id: str, chapter_id: str) -> SavedNotes | None:
    """Saved notes for a chapter, or None."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM saved_notes WHERE user_id = ? AND chapter_id = ?",
            (user_id, chapter_id),
        ).fetchone()

    if row is None:
        return None

    return SavedNotes(
        id=row["id"],
        user_id=row["user_id"],
        chapter_id=row["chapter_id"],
        subject=row["subject"],
        chapter_name=row["chapter_name"],
        notes_data=json.loads(row["notes_data"]),
        updated_at=row["updated_at"],
    )
