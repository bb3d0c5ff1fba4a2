"""Database module for SQLite persistence.

Provides:
- Database connection management and schema initialization
- AttemptStore contract and its SQLite implementation
"""

from microlearn.db.database import get_db, init_db
from microlearn.db.store import (
    AttemptStore,
    ConstraintError,
    FetchError,
    NotFoundError,
    SqliteAttemptStore,
    StoreError,
    ValidationError,
)

__all__ = [
    "get_db",
    "init_db",
    "AttemptStore",
    "SqliteAttemptStore",
    "StoreError",
    "FetchError",
    "ConstraintError",
    "ValidationError",
    "NotFoundError",
]
