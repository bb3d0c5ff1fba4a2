"""Record store for modules, quizzes, enrollments and quiz attempts.

The aggregation engine only talks to the store through the AttemptStore
contract (query/get/insert/update over plain dict records). The SQLite
implementation below is what the CLI, the web API and the tests use.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import structlog

from microlearn.db.database import create_schema, get_db

logger = structlog.get_logger(__name__)

Record = dict[str, Any]

# =============================================================================
# ERRORS
# =============================================================================


class StoreError(Exception):
    """Base error for record store operations."""

    pass


class FetchError(StoreError):
    """Store unreachable or a read/write could not be carried out."""

    pass


class ConstraintError(StoreError):
    """Uniqueness or reference constraint violated on insert."""

    pass


class ValidationError(StoreError):
    """Record is missing a required field or carries an invalid value."""

    pass


class NotFoundError(StoreError):
    """Record to update does not exist."""

    pass


# =============================================================================
# ENTITY DEFINITIONS
# =============================================================================

# entity -> (columns, required columns, timestamp column filled on insert)
ENTITIES: dict[str, tuple[tuple[str, ...], tuple[str, ...], str | None]] = {
    "profiles": (
        ("id", "full_name", "email", "role", "created_at"),
        ("full_name", "role"),
        "created_at",
    ),
    "modules": (
        (
            "id",
            "instructor_id",
            "title",
            "content_summary",
            "video_url",
            "pdf_url",
            "animated_content_url",
            "published",
            "created_at",
        ),
        ("instructor_id", "title"),
        "created_at",
    ),
    "enrollments": (
        ("id", "learner_id", "module_id", "enrolled_at"),
        ("learner_id", "module_id"),
        "enrolled_at",
    ),
    "quizzes": (
        ("id", "module_id", "ai_prompt", "created_at"),
        ("module_id",),
        "created_at",
    ),
    "questions": (
        (
            "id",
            "quiz_id",
            "question_text",
            "option_a",
            "option_b",
            "option_c",
            "option_d",
            "correct_answer",
            "explanation",
            "order_number",
        ),
        ("quiz_id", "question_text", "correct_answer"),
        None,
    ),
    "quiz_attempts": (
        (
            "id",
            "learner_id",
            "quiz_id",
            "module_id",
            "score",
            "total_questions",
            "answers",
            "completed_at",
        ),
        ("learner_id", "quiz_id", "module_id", "score", "total_questions"),
        "completed_at",
    ),
}

BOOL_COLUMNS = {"published"}
JSON_COLUMNS = {"answers"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _columns(entity: str) -> tuple[str, ...]:
    if entity not in ENTITIES:
        raise ValidationError(f"Unknown entity: {entity}")
    return ENTITIES[entity][0]


# =============================================================================
# CONTRACT
# =============================================================================


class AttemptStore(ABC):
    """Abstract record store consumed by the grading and analytics engine.

    Filters are equality matches; a list, tuple or set value means
    "column IN values". Records are plain dicts keyed by column name.
    """

    @abstractmethod
    def query(
        self,
        entity: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Record]:
        """Return all records of an entity matching the filters."""

    @abstractmethod
    def get(self, entity: str, record_id: str) -> Record | None:
        """Return one record by id, or None."""

    @abstractmethod
    def insert(self, entity: str, record: Record) -> Record:
        """Insert a record and return it with its generated id.

        Raises:
            ConstraintError: On uniqueness/reference violation
            ValidationError: On missing required field
        """

    @abstractmethod
    def update(self, entity: str, record_id: str, patch: Record) -> Record:
        """Apply a partial update and return the updated record.

        Raises:
            NotFoundError: If the record does not exist
        """


# =============================================================================
# SQLITE IMPLEMENTATION
# =============================================================================


class SqliteAttemptStore(AttemptStore):
    """AttemptStore backed by a SQLite file.

    Each call opens its own connection, so the store can be used from
    worker threads (asyncio.to_thread) without sharing a connection.
    """

    def __init__(self, db_path: Path, initialize: bool = True):
        self.db_path = Path(db_path)
        if initialize:
            try:
                create_schema(self.db_path)
            except (sqlite3.Error, OSError) as e:
                raise FetchError(f"Cannot open store at {self.db_path}: {e}") from e

    # -- helpers ---------------------------------------------------------

    def _encode(self, record: Record) -> Record:
        encoded = dict(record)
        for key in BOOL_COLUMNS & encoded.keys():
            encoded[key] = 1 if encoded[key] else 0
        for key in JSON_COLUMNS & encoded.keys():
            # JSON object keys are always strings; indices are restored on decode
            encoded[key] = json.dumps({str(k): v for k, v in (encoded[key] or {}).items()})
        return encoded

    def _decode(self, row: sqlite3.Row) -> Record:
        record = dict(row)
        for key in BOOL_COLUMNS & record.keys():
            record[key] = bool(record[key])
        for key in JSON_COLUMNS & record.keys():
            raw = json.loads(record[key] or "{}")
            record[key] = {int(k): v for k, v in raw.items()}
        return record

    def _where(self, entity: str, filters: dict[str, Any] | None) -> tuple[str, list[Any]]:
        columns = _columns(entity)
        clauses: list[str] = []
        params: list[Any] = []
        for key, value in (filters or {}).items():
            if key not in columns:
                raise ValidationError(f"Unknown column for {entity}: {key}")
            if isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
                if not values:
                    clauses.append("0")
                    continue
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f"{key} IN ({placeholders})")
                params.extend(self._encode({key: v})[key] for v in values)
            else:
                clauses.append(f"{key} = ?")
                params.append(self._encode({key: value})[key])
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _execute(self, sql: str, params: Iterable[Any]) -> list[sqlite3.Row]:
        try:
            with get_db(self.db_path) as conn:
                return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.IntegrityError as e:
            message = str(e)
            if "UNIQUE" in message or "FOREIGN KEY" in message:
                raise ConstraintError(message) from e
            raise ValidationError(message) from e
        except (sqlite3.Error, OSError) as e:
            logger.warning("store_operation_failed", sql=sql.split()[0], error=str(e))
            raise FetchError(str(e)) from e

    # -- contract --------------------------------------------------------

    def query(
        self,
        entity: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Record]:
        columns = _columns(entity)
        where, params = self._where(entity, filters)

        if order_by is not None:
            if order_by not in columns:
                raise ValidationError(f"Unknown column for {entity}: {order_by}")
            direction = "DESC" if descending else "ASC"
            order = f" ORDER BY {order_by} {direction}, rowid ASC"
        else:
            order = " ORDER BY rowid ASC"

        rows = self._execute(f"SELECT * FROM {entity}{where}{order}", params)
        return [self._decode(row) for row in rows]

    def get(self, entity: str, record_id: str) -> Record | None:
        _columns(entity)
        rows = self._execute(f"SELECT * FROM {entity} WHERE id = ?", (record_id,))
        if not rows:
            return None
        return self._decode(rows[0])

    def insert(self, entity: str, record: Record) -> Record:
        columns, required, timestamp_column = ENTITIES.get(entity, ((), (), None))
        if not columns:
            raise ValidationError(f"Unknown entity: {entity}")

        missing = [c for c in required if record.get(c) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required field(s) for {entity}: {', '.join(missing)}")

        unknown = [k for k in record if k not in columns]
        if unknown:
            raise ValidationError(f"Unknown column(s) for {entity}: {', '.join(unknown)}")

        values = dict(record)
        values.setdefault("id", uuid.uuid4().hex)
        if timestamp_column and not values.get(timestamp_column):
            values[timestamp_column] = _now()

        encoded = self._encode(values)
        names = ", ".join(encoded)
        placeholders = ", ".join("?" for _ in encoded)
        self._execute(
            f"INSERT INTO {entity} ({names}) VALUES ({placeholders})",
            encoded.values(),
        )

        logger.debug("store.inserted", entity=entity, record_id=values["id"])
        return self.get(entity, values["id"]) or values

    def update(self, entity: str, record_id: str, patch: Record) -> Record:
        columns = _columns(entity)
        unknown = [k for k in patch if k not in columns or k == "id"]
        if unknown:
            raise ValidationError(f"Cannot update column(s) for {entity}: {', '.join(unknown)}")

        if self.get(entity, record_id) is None:
            raise NotFoundError(f"{entity} record not found: {record_id}")

        if patch:
            encoded = self._encode(patch)
            assignments = ", ".join(f"{k} = ?" for k in encoded)
            self._execute(
                f"UPDATE {entity} SET {assignments} WHERE id = ?",
                [*encoded.values(), record_id],
            )
            logger.debug("store.updated", entity=entity, record_id=record_id, fields=list(patch))

        updated = self.get(entity, record_id)
        if updated is None:
            raise NotFoundError(f"{entity} record not found: {record_id}")
        return updated


# =============================================================================
# ASYNC READS
# =============================================================================


async def aquery(
    store: AttemptStore,
    entity: str,
    filters: dict[str, Any] | None = None,
    order_by: str | None = None,
    descending: bool = False,
) -> list[Record]:
    """Run AttemptStore.query off the event loop."""
    return await asyncio.to_thread(store.query, entity, filters, order_by, descending)


async def aget(store: AttemptStore, entity: str, record_id: str) -> Record | None:
    """Run AttemptStore.get off the event loop."""
    return await asyncio.to_thread(store.get, entity, record_id)
