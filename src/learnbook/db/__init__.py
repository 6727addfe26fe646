"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for profiles, subjects, tasks, progress and roadmap
"""

from learnbook.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
