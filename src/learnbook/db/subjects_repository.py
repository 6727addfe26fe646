"""Repository functions for user subjects and their chapters.

Subject mutations are scoped to the owning user; chapters are removed
with their subject through ON DELETE CASCADE.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from learnbook.db.database import get_db, new_id, now_iso

logger = structlog.get_logger(__name__)

CHAPTER_STATUSES = ("not_started", "in_progress", "completed", "revision")

# Restricts chapter statements to chapters of subjects owned by a user
OWNED_CHAPTER = "subject_id IN (SELECT id FROM user_subjects WHERE user_id = ?)"


@dataclass
class ChapterRecord:
    """Chapter of a user subject."""

    id: str
    subject_id: str
    chapter_number: int
    name: str
    description: str | None
    concepts: list[str]
    estimated_hours: float
    progress: int
    status: str
    created_at: str
    updated_at: str


@dataclass
class SubjectRecord:
    """User subject, optionally with its chapters loaded."""

    id: str
    user_id: str
    name: str
    code: str | None
    description: str | None
    is_custom: bool
    created_at: str
    updated_at: str
    chapters: list[ChapterRecord] = field(default_factory=list)


def _row_to_subject(row) -> SubjectRecord:
    return SubjectRecord(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        code=row["code"],
        description=row["description"],
        is_custom=bool(row["is_custom"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_chapter(row) -> ChapterRecord:
    return ChapterRecord(
        id=row["id"],
        subject_id=row["subject_id"],
        chapter_number=row["chapter_number"],
        name=row["name"],
        description=row["description"],
        concepts=json.loads(row["concepts"]) if row["concepts"] else [],
        estimated_hours=row["estimated_hours"],
        progress=row["progress"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def get_subject(user_id: str, subject_id: str) -> SubjectRecord | None:
    """Get one of the user's subjects, with chapters."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM user_subjects WHERE id = ? AND user_id = ?",
            (subject_id, user_id),
        ).fetchone()

    if row is None:
        return None

    subject = _row_to_subject(row)
    subject.chapters = list_chapters(subject_id)
    return subject


def list_subjects_with_chapters(user_id: str) -> list[SubjectRecord]:
    """All subjects of a user in creation order, each with its chapters."""
    with get_db() as conn:
        subject_rows = conn.execute(
            "SELECT * FROM user_subjects WHERE user_id = ? ORDER BY created_at, rowid",
            (user_id,),
        ).fetchall()

        subjects = [_row_to_subject(r) for r in subject_rows]
        if not subjects:
            return []

        placeholders = ", ".join("?" for _ in subjects)
        chapter_rows = conn.execute(
            f"""
            SELECT * FROM subject_chapters
            WHERE subject_id IN ({placeholders})
            ORDER BY chapter_number
            """,
            [s.id for s in subjects],
        ).fetchall()

    by_subject: dict[str, list[ChapterRecord]] = {}
    for row in chapter_rows:
        chapter = _row_to_chapter(row)
        by_subject.setdefault(chapter.subject_id, []).append(chapter)

    for subject in subjects:
        subject.chapters = by_subject.get(subject.id, [])

    return subjects


def add_subject(
    user_id: str,
    name: str,
    code: str | None = None,
    description: str | None = None,
    is_custom: bool = False,
) -> SubjectRecord:
    """Insert a subject for a user."""
    subject_id = new_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO user_subjects (id, user_id, name, code, description, is_custom)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (subject_id, user_id, name, code or None, description or None, int(is_custom)),
        )

    logger.debug("subjects.inserted", user_id=user_id, subject_id=subject_id)
    subject = get_subject(user_id, subject_id)
    if subject is None:
        raise RuntimeError(f"Subject {subject_id!r} missing after insert")
    return subject


def update_subject(user_id: str, subject_id: str, updates: dict[str, Any]) -> bool:
    """Update name/code/description/is_custom of a user's subject.

    Returns:
        True if a row was updated
    """
    allowed = {"name", "code", "description", "is_custom"}
    values = {k: v for k, v in updates.items() if k in allowed}
    if "is_custom" in values:
        values["is_custom"] = int(bool(values["is_custom"]))
    if not values:
        return get_subject(user_id, subject_id) is not None

    assignments = ", ".join(f"{k} = ?" for k in values)
    with get_db() as conn:
        cursor = conn.execute(
            f"UPDATE user_subjects SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?",
            (*values.values(), now_iso(), subject_id, user_id),
        )

    return cursor.rowcount > 0


def remove_subject(user_id: str, subject_id: str) -> bool:
    """Delete a user's subject and its chapters.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM user_subjects WHERE id = ? AND user_id = ?",
            (subject_id, user_id),
        )

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("subjects.deleted", user_id=user_id, subject_id=subject_id)
    return deleted


def list_chapters(subject_id: str) -> list[ChapterRecord]:
    """Chapters of a subject ordered by chapter number."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM subject_chapters WHERE subject_id = ? ORDER BY chapter_number",
            (subject_id,),
        ).fetchall()

    return [_row_to_chapter(r) for r in rows]


def replace_chapters(subject_id: str, chapters: list[dict[str, Any]]) -> list[ChapterRecord]:
    """Replace all chapters of a subject.

    Existing chapters are deleted first so repeated saves never duplicate.
    Each dict needs ``chapter_number`` and ``name``; description, concepts
    and estimated_hours (default 5) are optional.
    """
    with get_db() as conn:
        conn.execute("DELETE FROM subject_chapters WHERE subject_id = ?", (subject_id,))
        conn.executemany(
            """
            INSERT INTO subject_chapters (
                id, subject_id, chapter_number, name, description,
                concepts, estimated_hours, progress, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 0, 'not_started')
            """,
            [
                (
                    new_id(),
                    subject_id,
                    ch["chapter_number"],
                    ch["name"],
                    ch.get("description") or None,
                    json.dumps(ch.get("concepts") or []),
                    5 if ch.get("estimated_hours") is None else ch["estimated_hours"],
                )
                for ch in chapters
            ],
        )

    logger.debug("chapters.replaced", subject_id=subject_id, count=len(chapters))
    return list_chapters(subject_id)


def update_chapter_progress(
    user_id: str,
    chapter_id: str,
    progress: int | None = None,
    status: str | None = None,
) -> bool:
    """Update progress and/or status of one of the user's chapters.

    Returns:
        True if a row was updated

    Raises:
        ValueError: If status is not a known chapter status
    """
    if status is not None and status not in CHAPTER_STATUSES:
        raise ValueError(f"Unknown chapter status: {status}")

    values: dict[str, Any] = {}
    if progress is not None:
        values["progress"] = max(0, min(100, progress))
    if status is not None:
        values["status"] = status
    if not values:
        return False

    assignments = ", ".join(f"{k} = ?" for k in values)
    with get_db() as conn:
        cursor = conn.execute(
            f"""
            UPDATE subject_chapters SET {assignments}, updated_at = ?
            WHERE id = ? AND {OWNED_CHAPTER}
            """,
            (*values.values(), now_iso(), chapter_id, user_id),
        )

    return cursor.rowcount > 0


def delete_chapter(user_id: str, chapter_id: str) -> bool:
    """Delete one of the user's chapters."""
    with get_db() as conn:
        cursor = conn.execute(
            f"DELETE FROM subject_chapters WHERE id = ? AND {OWNED_CHAPTER}",
            (chapter_id, user_id),
        )

    return cursor.rowcount > 0
