"""Repository functions for user profiles and study settings.

Settings live in the learning_context table, one row per user.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from learnbook.db.database import get_db, now_iso

logger = structlog.get_logger(__name__)

PROFILE_FIELDS = (
    "full_name",
    "country",
    "education_level",
    "board",
    "class_grade",
    "course_program",
)

LEARNING_STYLES = ("visual", "reading", "auditory", "kinesthetic")


@dataclass
class ProfileRecord:
    """User profile from database."""

    id: str
    full_name: str | None
    country: str | None
    education_level: str | None
    board: str | None
    class_grade: str | None
    course_program: str | None
    created_at: str
    updated_at: str


@dataclass
class GoogleTokens:
    """Stored Google OAuth tokens for a user."""

    access_token: str
    refresh_token: str | None
    expires_at: str | None


@dataclass
class UserSettings:
    """Study settings with defaults for users who never saved any."""

    daily_available_time: int = 120
    exam_date: str | None = None
    weak_topics: list[str] = field(default_factory=list)
    strong_topics: list[str] = field(default_factory=list)
    learning_style: str = "visual"


def get_profile(user_id: str) -> ProfileRecord | None:
    """Get a profile by user id, or None."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM user_profiles WHERE id = ?", (user_id,)
        ).fetchone()

    if row is None:
        return None

    return ProfileRecord(
        id=row["id"],
        full_name=row["full_name"],
        country=row["country"],
        education_level=row["education_level"],
        board=row["board"],
        class_grade=row["class_grade"],
        course_program=row["course_program"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def upsert_profile(user_id: str, updates: dict[str, Any]) -> ProfileRecord:
    """Create the profile or update the given fields.

    Unknown keys are ignored.
    """
    values = {k: v for k, v in updates.items() if k in PROFILE_FIELDS}

    with get_db() as conn:
        conn.execute(
            "INSERT INTO user_profiles (id) VALUES (?) ON CONFLICT(id) DO NOTHING",
            (user_id,),
        )
        if values:
            assignments = ", ".join(f"{k} = ?" for k in values)
            conn.execute(
                f"UPDATE user_profiles SET {assignments}, updated_at = ? WHERE id = ?",
                (*values.values(), now_iso(), user_id),
            )

    logger.debug("profiles.upserted", user_id=user_id, fields=sorted(values))
    profile = get_profile(user_id)
    if profile is None:
        raise RuntimeError(f"Profile {user_id!r} missing after upsert")
    return profile


def save_google_tokens(
    user_id: str,
    access_token: str,
    refresh_token: str | None = None,
    expires_at: str | None = None,
) -> None:
    """Store Google OAuth tokens, keeping the old refresh token if none given."""
    upsert_profile(user_id, {})
    with get_db() as conn:
        conn.execute(
            """
            UPDATE user_profiles SET
                google_access_token = ?,
                google_refresh_token = COALESCE(?, google_refresh_token),
                google_token_expires_at = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (access_token, refresh_token, expires_at, now_iso(), user_id),
        )

    logger.debug("profiles.google_tokens_saved", user_id=user_id)


def get_google_tokens(user_id: str) -> GoogleTokens | None:
    """Get stored Google tokens, or None if the user never connected Google."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT google_access_token, google_refresh_token, google_token_expires_at
            FROM user_profiles WHERE id = ?
            """,
            (user_id,),
        ).fetchone()

    if row is None or not row["google_access_token"]:
        return None

    return GoogleTokens(
        access_token=row["google_access_token"],
        refresh_token=row["google_refresh_token"],
        expires_at=row["google_token_expires_at"],
    )


def get_settings(user_id: str) -> UserSettings:
    """Get study settings, falling back to defaults."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM learning_context WHERE user_id = ?", (user_id,)
        ).fetchone()

    if row is None:
        return UserSettings()

    daily_minutes = row["daily_available_time"]
    return UserSettings(
        daily_available_time=120 if daily_minutes is None else daily_minutes,
        exam_date=row["exam_date"],
        weak_topics=json.loads(row["weak_topics"] or "[]"),
        strong_topics=json.loads(row["strong_topics"] or "[]"),
        learning_style=row["learning_style"] or "visual",
    )


def update_settings(user_id: str, updates: dict[str, Any]) -> UserSettings:
    """Merge partial updates into the stored settings.

    Raises:
        ValueError: If learning_style is not a known style
    """
    current = get_settings(user_id)

    for key, value in updates.items():
        if value is not None and hasattr(current, key):
            setattr(current, key, value)

    if current.learning_style not in LEARNING_STYLES:
        raise ValueError(f"Unknown learning style: {current.learning_style}")

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO learning_context (
                user_id, daily_available_time, exam_date,
                weak_topics, strong_topics, learning_style, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                daily_available_time = excluded.daily_available_time,
                exam_date = excluded.exam_date,
                weak_topics = excluded.weak_topics,
                strong_topics = excluded.strong_topics,
                learning_style = excluded.learning_style,
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                current.daily_available_time,
                current.exam_date,
                json.dumps(current.weak_topics),
                json.dumps(current.strong_topics),
                current.learning_style,
                now_iso(),
            ),
        )

    logger.debug("settings.updated", user_id=user_id)
    return current
