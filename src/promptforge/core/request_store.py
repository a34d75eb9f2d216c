"""Persistence for generation requests.

:class:`RequestStore` is the storage contract the orchestrator depends on;
:class:`SQLiteRequestStore` implements it on a local SQLite file.

Each operation opens its own connection, so independent requests never share
connection state.  Timestamps are stored as ISO-8601 UTC text with
microsecond precision, which keeps ``ORDER BY created_at`` chronological.

Conditional Updates
-------------------
``update()`` accepts an ``expected_status``.  When given, the row is only
written if it still has that status; otherwise :class:`ConflictError` is
raised.  The orchestrator uses this so a manual status override that lands
mid-pipeline is never overwritten.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from promptforge.core.errors import ConflictError, NotFoundError, StorageError
from promptforge.core.models import GenerationRequest, RequestStatus, utc_now

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = ("expanded_prompt", "image_url", "status", "completed_at")


class RequestStore(ABC):
    """Storage contract for generation request records."""

    @abstractmethod
    def create(
        self,
        user_idea: str,
        expanded_prompt: str = "",
        status: RequestStatus = RequestStatus.PENDING,
        created_at: datetime | None = None,
    ) -> GenerationRequest:
        """Insert a new record and return it with its assigned id."""
        pass

    @abstractmethod
    def update(
        self,
        request_id: int,
        fields: dict[str, Any],
        expected_status: RequestStatus | None = None,
    ) -> GenerationRequest:
        """Write *fields* to an existing record and return the updated record.

        Raises:
            NotFoundError: If no record has *request_id*
            ConflictError: If *expected_status* is given and does not match
        """
        pass

    @abstractmethod
    def get_by_id(self, request_id: int) -> GenerationRequest | None:
        """Return the record with *request_id*, or None if there is none."""
        pass

    @abstractmethod
    def list_all(self) -> list[GenerationRequest]:
        """Return every record, newest first."""
        pass


def _to_db_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _row_to_request(row: sqlite3.Row) -> GenerationRequest:
    return GenerationRequest(
        id=row["id"],
        user_idea=row["user_idea"],
        expanded_prompt=row["expanded_prompt"],
        image_url=row["image_url"],
        status=RequestStatus(row["status"]),
        created_at=_from_db_time(row["created_at"]),
        completed_at=_from_db_time(row["completed_at"]),
    )


class SQLiteRequestStore(RequestStore):
    """Request store backed by a SQLite database file.

    Driver errors are logged and re-raised as :class:`StorageError`.
    """

    def __init__(self, db_path: Path):
        """Open (and if needed create) the request database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()
        logger.info(f"Initialized request database at {self.db_path}")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and always closes."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Cannot open request database {self.db_path}: {e}")
            raise StorageError(f"Cannot open request database: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Request database error: {e}")
            raise StorageError(f"Request database error: {e}") from e
        finally:
            conn.close()

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS image_generation_requests (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_idea TEXT NOT NULL,
                    expanded_prompt TEXT NOT NULL DEFAULT '',
                    image_url TEXT,
                    status TEXT NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
                    created_at TEXT NOT NULL,
                    completed_at TEXT
                )
                """)

            # Listing is always newest first
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_requests_created_at
                ON image_generation_requests(created_at DESC)
                """)

    def _fetch(self, conn: sqlite3.Connection, request_id: int) -> GenerationRequest | None:
        row = conn.execute(
            "SELECT * FROM image_generation_requests WHERE id = ?",
            (request_id,),
        ).fetchone()
        return _row_to_request(row) if row else None

    def create(
        self,
        user_idea: str,
        expanded_prompt: str = "",
        status: RequestStatus = RequestStatus.PENDING,
        created_at: datetime | None = None,
    ) -> GenerationRequest:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO image_generation_requests
                    (user_idea, expanded_prompt, status, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    user_idea,
                    expanded_prompt,
                    RequestStatus(status).value,
                    _to_db_time(created_at or utc_now()),
                ),
            )
            record = self._fetch(conn, cursor.lastrowid)

        logger.info(f"Created request {record.id} ({record.status.value})")
        return record

    def update(
        self,
        request_id: int,
        fields: dict[str, Any],
        expected_status: RequestStatus | None = None,
    ) -> GenerationRequest:
        unknown = set(fields) - set(_UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot update column(s): {', '.join(sorted(unknown))}")

        expected = RequestStatus(expected_status) if expected_status is not None else None

        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name == "status":
                value = RequestStatus(value).value
            elif name == "completed_at":
                value = _to_db_time(value)
            values[name] = value

        with self._connect() as conn:
            if values:
                assignments = ", ".join(f"{name} = ?" for name in values)
                sql = f"UPDATE image_generation_requests SET {assignments} WHERE id = ?"
                params: list[Any] = [*values.values(), request_id]
                if expected is not None:
                    sql += " AND status = ?"
                    params.append(expected.value)
                cursor = conn.execute(sql, params)
                written = cursor.rowcount > 0
            else:
                written = False

            record = self._fetch(conn, request_id)

        if record is None:
            raise NotFoundError(request_id)
        if expected is not None and not written and record.status is not expected:
            logger.warning(
                f"Request {request_id} moved to {record.status.value} "
                f"while {expected.value} was expected"
            )
            raise ConflictError(request_id, expected.value, record.status.value)

        logger.debug(f"Updated request {request_id}: {sorted(values)}")
        return record

    def get_by_id(self, request_id: int) -> GenerationRequest | None:
        with self._connect() as conn:
            return self._fetch(conn, request_id)

    def list_all(self) -> list[GenerationRequest]:
        with self._connect() as conn:
            rows = conn.execute("""
                SELECT * FROM image_generation_requests
                ORDER BY created_at DESC, id DESC
                """).fetchall()
        return [_row_to_request(row) for row in rows]
