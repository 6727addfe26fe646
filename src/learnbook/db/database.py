"""SQLite database connection and schema management.

Provides connection management and schema initialization for LearnBook.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/learnbook.db")

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/learnbook.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    return _db_path or DEFAULT_DB_PATH


def new_id() -> str:
    """Generate a row id."""
    return uuid.uuid4().hex


def now_iso() -> str:
    """Current UTC time as ISO 8601."""
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success and rolls back on any exception.

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM user_subjects").fetchall()
    """
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency. List-valued columns hold JSON text.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS user_profiles (
            id TEXT PRIMARY KEY,
            full_name TEXT,
            country TEXT,
            education_level TEXT CHECK(education_level IN ('school', 'college')),
            board TEXT,
            class_grade TEXT,
            course_program TEXT,
            google_access_token TEXT,
            google_refresh_token TEXT,
            google_token_expires_at TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- One row per user; holds study settings
        CREATE TABLE IF NOT EXISTS learning_context (
            user_id TEXT PRIMARY KEY,
            subject TEXT NOT NULL DEFAULT 'default',
            daily_available_time INTEGER NOT NULL DEFAULT 120,
            exam_date TEXT,
            weak_topics TEXT NOT NULL DEFAULT '[]',
            strong_topics TEXT NOT NULL DEFAULT '[]',
            learning_style TEXT NOT NULL DEFAULT 'visual'
                CHECK(learning_style IN ('visual', 'reading', 'auditory', 'kinesthetic')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS user_subjects (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            code TEXT,
            description TEXT,
            is_custom INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS subject_chapters (
            id TEXT PRIMARY KEY,
            subject_id TEXT NOT NULL REFERENCES user_subjects(id) ON DELETE CASCADE,
            chapter_number INTEGER NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            concepts TEXT NOT NULL DEFAULT '[]',
            estimated_hours REAL NOT NULL DEFAULT 5,
            progress INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'not_started'
                CHECK(status IN ('not_started', 'in_progress', 'completed', 'revision')),
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS daily_tasks (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            chapter_id TEXT,
            task_date TEXT NOT NULL,
            task_type TEXT NOT NULL DEFAULT 'study'
                CHECK(task_type IN ('study', 'revision', 'practice')),
            task_description TEXT,
            duration_minutes INTEGER NOT NULL DEFAULT 30,
            time_slot TEXT,
            completed INTEGER NOT NULL DEFAULT 0,
            skipped INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS user_progress (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            chapter_id TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'not_started'
                CHECK(status IN ('not_started', 'in_progress', 'completed', 'revision')),
            completion_percentage INTEGER NOT NULL DEFAULT 0,
            time_spent INTEGER NOT NULL DEFAULT 0,
            last_studied TEXT,
            notes TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(user_id, chapter_id)
        );

        CREATE TABLE IF NOT EXISTS roadmap_items (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            chapter_id TEXT NOT NULL,
            chapter_name TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            is_milestone INTEGER NOT NULL DEFAULT 0,
            is_revision INTEGER NOT NULL DEFAULT 0,
            priority TEXT NOT NULL DEFAULT 'medium'
                CHECK(priority IN ('high', 'medium', 'low')),
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'in_progress', 'completed')),
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS saved_notes (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            chapter_id TEXT NOT NULL,
            subject TEXT NOT NULL,
            chapter_name TEXT NOT NULL,
            notes_data TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(user_id, chapter_id)
        );

        CREATE INDEX IF NOT EXISTS idx_subjects_user ON user_subjects(user_id);
        CREATE INDEX IF NOT EXISTS idx_chapters_subject ON subject_chapters(subject_id);
        CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON daily_tasks(user_id, task_date);
        CREATE INDEX IF NOT EXISTS idx_roadmap_user ON roadmap_items(user_id);
        """
    )
