"""Repository functions for persisted roadmap items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from learnbook.db.database import get_db, new_id

logger = structlog.get_logger(__name__)

ROADMAP_STATUSES = ("pending", "in_progress", "completed")
PRIORITIES = ("high", "medium", "low")


@dataclass
class RoadmapItemRecord:
    id: str
    user_id: str
    chapter_id: str
    chapter_name: str
    start_date: str
    end_date: str
    is_milestone: bool
    is_revision: bool
    priority: str
    status: str


def _row_to_record(row) -> RoadmapItemRecord:
    return RoadmapItemRecord(
        id=row["id"],
        user_id=row["user_id"],
        chapter_id=row["chapter_id"],
        chapter_name=row["chapter_name"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        is_milestone=bool(row["is_milestone"]),
        is_revision=bool(row["is_revision"]),
        priority=row["priority"],
        status=row["status"],
    )


def _pick(item: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    value = item[snake] if snake in item else item.get(camel)
    return default if value is None else value


def _as_flag(value: Any) -> bool:
    """Model output sends flags as booleans, numbers or "true"/"false" strings."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def replace_roadmap(user_id: str, items: list[Any]) -> list[RoadmapItemRecord]:
    """Replace a user's roadmap with freshly generated items.

    Items may use snake_case or camelCase keys, matching the generator output.
    Entries that are not objects are skipped, missing chapter ids/names are
    stored as "" and unknown priorities as "medium".

    Raises:
        ValueError: If an item has no start or end date
    """
    rows = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("roadmap.item_skipped", user_id=user_id, item=str(item)[:80])
            continue

        start_date = _pick(item, "start_date", "startDate")
        end_date = _pick(item, "end_date", "endDate")
        if not start_date or not end_date:
            raise ValueError("Roadmap items need a start and end date")

        priority = item.get("priority")
        rows.append(
            (
                new_id(),
                user_id,
                str(_pick(item, "chapter_id", "chapterId", "")),
                str(_pick(item, "chapter_name", "chapterName", "")),
                str(start_date),
                str(end_date),
                int(_as_flag(_pick(item, "is_milestone", "isMilestone", False))),
                int(_as_flag(_pick(item, "is_revision", "isRevision", False))),
                priority if priority in PRIORITIES else "medium",
            )
        )

    with get_db() as conn:
        conn.execute("DELETE FROM roadmap_items WHERE user_id = ?", (user_id,))
        conn.executemany(
            """
            INSERT INTO roadmap_items (
                id, user_id, chapter_id, chapter_name, start_date, end_date,
                is_milestone, is_revision, priority
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )

    logger.debug("roadmap.replaced", user_id=user_id, count=len(rows))
    return list_roadmap(user_id)


def list_roadmap(user_id: str) -> list[RoadmapItemRecord]:
    """Roadmap items of a user ordered by start date."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM roadmap_items WHERE user_id = ? ORDER BY start_date, rowid",
            (user_id,),
        ).fetchall()

    return [_row_to_record(r) for r in rows]


def update_roadmap_status(user_id: str, item_id: str, status: str) -> bool:
    """Set the status of a roadmap item.

    Raises:
        ValueError: If status is unknown
    """
    if status not in ROADMAP_STATUSES:
        raise ValueError(f"Unknown roadmap status: {status}")

    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE roadmap_items SET status = ? WHERE id = ? AND user_id = ?",
            (status, item_id, user_id),
        )

    return cursor.rowcount > 0
