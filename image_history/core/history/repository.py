# image_history/core/history/repository.py
"""SQLite repository for history records.

Every operation returns a Result instead of raising. Storage that cannot
be opened maps to STORAGE_UNAVAILABLE; SQL and serialization errors map
to TRANSACTION_FAILURE.
"""

import json
import logging
import sqlite3
from collections.abc import Callable
from typing import TypeVar

from image_history.core.errors import (
    Err,
    ErrorKind,
    Ok,
    Result,
    StorageUnavailableError,
)
from image_history.core.history.models import HistoryKind, HistoryRecord
from image_history.core.history.storage import StorageContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLUMNS = "id, kind, prompt, image_data, thumbnail_data, created_at, parameters"

# Reverse walk of the created_at index; ties fall back to id, newest first
_ORDER_NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"


class HistoryRepository:
    """Repository for storing and retrieving history records from SQLite.

    Attributes:
        storage: Shared storage context the repository runs against.
    """

    def __init__(self, storage: StorageContext) -> None:
        self.storage = storage

    async def _run(
        self, operation: str, fn: Callable[[sqlite3.Connection], T]
    ) -> Result[T]:
        try:
            return Ok(await self.storage.run(fn))
        except StorageUnavailableError as e:
            return Err(ErrorKind.STORAGE_UNAVAILABLE, f"{operation}: {e}", e)
        except (sqlite3.Error, TypeError, ValueError) as e:
            return Err(ErrorKind.TRANSACTION_FAILURE, f"{operation}: {e}", e)

    async def insert(self, record: HistoryRecord) -> Result[None]:
        """Add a new record. Fails if the id already exists."""

        def _insert(conn: sqlite3.Connection) -> None:
            parameters = (
                json.dumps(record.parameters) if record.parameters is not None else None
            )
            conn.execute(
                f"INSERT INTO history ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.kind.value,
                    record.prompt,
                    record.image_data,
                    record.thumbnail_data,
                    record.created_at,
                    parameters,
                ),
            )

        return await self._run("insert", _insert)

    async def list(self, kind: HistoryKind | None = None) -> Result[list[HistoryRecord]]:
        """List records newest first, optionally restricted to one kind."""

        def _list(conn: sqlite3.Connection) -> list[HistoryRecord]:
            if kind is None:
                cursor = conn.execute(
                    f"SELECT {_COLUMNS} FROM history {_ORDER_NEWEST_FIRST}"
                )
            else:
                cursor = conn.execute(
                    f"SELECT {_COLUMNS} FROM history WHERE kind = ? "
                    f"{_ORDER_NEWEST_FIRST}",
                    (kind.value,),
                )
            return [HistoryRecord.from_row(row) for row in cursor.fetchall()]

        return await self._run("list", _list)

    async def get(self, record_id: str) -> Result[HistoryRecord | None]:
        """Point lookup by id; Ok(None) on miss."""

        def _get(conn: sqlite3.Connection) -> HistoryRecord | None:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM history WHERE id = ?", (record_id,)
            ).fetchone()
            return HistoryRecord.from_row(row) if row is not None else None

        return await self._run("get", _get)

    async def delete(self, record_id: str) -> Result[None]:
        """Delete one record. Deleting an absent id is not an error."""

        def _delete(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM history WHERE id = ?", (record_id,))

        return await self._run("delete", _delete)

    async def clear(self) -> Result[None]:
        """Delete every record."""

        def _clear(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM history")

        return await self._run("clear", _clear)

    async def count(self) -> Result[int]:
        """Count stored records."""

        def _count(conn: sqlite3.Connection) -> int:
            return conn.execute("SELECT COUNT(*) FROM history").fetchone()[0]

        return await self._run("count", _count)
