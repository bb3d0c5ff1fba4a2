"""SQLite database connection and schema management.

Provides connection management and schema initialization for the
microlearning platform record store.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/microlearn.db")

# Current database path (module-level for simplicity in CLI context)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> Path:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/microlearn.db

    Returns:
        The path of the initialized database
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))
    return _db_path


def get_db_path() -> Path:
    """Return the database path currently in use."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Args:
        db_path: Explicit database file. Defaults to the path set by init_db.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM modules").fetchall()
    """
    path = db_path or get_db_path()

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
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


def create_schema(db_path: Path) -> None:
    """Create the schema in a specific database file."""
    with get_db(db_path) as conn:
        _create_schema(conn)


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency. Quizzes are not unique per module
    and quiz_attempts carry no uniqueness guard.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL DEFAULT '',
            role TEXT NOT NULL CHECK(role IN ('learner', 'instructor')),
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS modules (
            id TEXT PRIMARY KEY,
            instructor_id TEXT NOT NULL,
            title TEXT NOT NULL,
            content_summary TEXT NOT NULL DEFAULT '',
            video_url TEXT,
            pdf_url TEXT,
            animated_content_url TEXT,
            published INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS enrollments (
            id TEXT PRIMARY KEY,
            learner_id TEXT NOT NULL,
            module_id TEXT NOT NULL REFERENCES modules(id),
            enrolled_at TEXT NOT NULL,
            UNIQUE (learner_id, module_id)
        );

        CREATE TABLE IF NOT EXISTS quizzes (
            id TEXT PRIMARY KEY,
            module_id TEXT NOT NULL REFERENCES modules(id),
            ai_prompt TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS questions (
            id TEXT PRIMARY KEY,
            quiz_id TEXT NOT NULL REFERENCES quizzes(id),
            question_text TEXT NOT NULL,
            option_a TEXT NOT NULL DEFAULT '',
            option_b TEXT NOT NULL DEFAULT '',
            option_c TEXT NOT NULL DEFAULT '',
            option_d TEXT NOT NULL DEFAULT '',
            correct_answer TEXT NOT NULL CHECK(correct_answer IN ('A', 'B', 'C', 'D')),
            explanation TEXT NOT NULL DEFAULT '',
            order_number INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS quiz_attempts (
            id TEXT PRIMARY KEY,
            learner_id TEXT NOT NULL,
            quiz_id TEXT NOT NULL,
            module_id TEXT NOT NULL,
            score INTEGER NOT NULL,
            total_questions INTEGER NOT NULL,
            answers TEXT NOT NULL DEFAULT '{}',
            completed_at TEXT NOT NULL,
            CHECK (score >= 0 AND score <= total_questions)
        );

        CREATE INDEX IF NOT EXISTS idx_modules_instructor ON modules(instructor_id);
        CREATE INDEX IF NOT EXISTS idx_enrollments_learner ON enrollments(learner_id);
        CREATE INDEX IF NOT EXISTS idx_questions_quiz ON questions(quiz_id);
        CREATE INDEX IF NOT EXISTS idx_attempts_learner ON quiz_attempts(learner_id);
        CREATE INDEX IF NOT EXISTS idx_attempts_module ON quiz_attempts(module_id);
        """
    )
