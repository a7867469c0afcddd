# image_history/core/history/storage.py
"""Process-wide SQLite handle for the history store.

The StorageContext is constructed once at application start and passed to
every component that needs the database. It opens lazily and exactly once:

    UNOPENED -> OPENING -> READY

Concurrent callers that arrive while the database is opening await the same
pending open. A failed open returns the context to UNOPENED so a later call
can retry. CLOSED is only reached through shutdown() at process exit.
"""

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import TypeVar

from image_history.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_VERSION = 1


class StorageState(str, Enum):
    """Lifecycle state of the database handle."""

    UNOPENED = "unopened"
    OPENING = "opening"
    READY = "ready"
    CLOSED = "closed"


class StorageContext:
    """Shared, lazily opened connection to the history database.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str = "data/history.db") -> None:
        self.db_path = db_path
        self._state = StorageState.UNOPENED
        self._conn: sqlite3.Connection | None = None
        self._opening: asyncio.Task[sqlite3.Connection] | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> StorageState:
        """Current lifecycle state."""
        return self._state

    def _connect(self) -> sqlite3.Connection:
        """Open the database and create the schema if absent.

        Runs in a worker thread.
        """
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS history (
                    id TEXT PRIMARY KEY,
                    kind TEXT NOT NULL,
                    prompt TEXT,
                    image_data TEXT NOT NULL,
                    thumbnail_data TEXT,
                    created_at INTEGER NOT NULL,
                    parameters TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_history_created_at
                ON history(created_at)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_history_kind
                ON history(kind)
            """)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            conn.commit()
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    async def _open(self) -> sqlite3.Connection:
        try:
            conn = await asyncio.to_thread(self._connect)
        except Exception as e:
            self._state = StorageState.UNOPENED
            self._opening = None
            logger.error("Failed to open history database %s: %s", self.db_path, e)
            raise StorageUnavailableError(str(e)) from e

        self._conn = conn
        self._state = StorageState.READY
        self._opening = None
        logger.info("History database ready at %s", self.db_path)
        return conn

    async def connection(self) -> sqlite3.Connection:
        """Get the shared connection, opening the database if needed.

        Returns:
            The open sqlite3 connection.

        Raises:
            StorageUnavailableError: If the database cannot be opened or the
                context has been shut down.
        """
        if self._state is StorageState.READY and self._conn is not None:
            return self._conn
        if self._state is StorageState.CLOSED:
            raise StorageUnavailableError("History database has been closed")

        if self._opening is None:
            self._state = StorageState.OPENING
            self._opening = asyncio.ensure_future(self._open())

        # shield: a cancelled waiter must not cancel the open for the others
        return await asyncio.shield(self._opening)

    async def run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run one transaction against the database.

        The callable executes in a worker thread. Transactions are
        serialized; the transaction is committed when ``fn`` returns and
        rolled back when it raises. Cancelling the caller does not abort a
        transaction that has already been queued; it still runs to completion
        before the next one starts.

        Args:
            fn: Function receiving the connection.

        Returns:
            Whatever ``fn`` returns.

        Raises:
            StorageUnavailableError: If the database cannot be opened.
            Exception: Anything raised by ``fn`` or by SQLite.
        """
        conn = await self.connection()
        # shield: a cancelled caller must not release the lock while the
        # worker thread is still inside the transaction
        return await asyncio.shield(self._locked_transact(conn, fn))

    async def _locked_transact(
        self, conn: sqlite3.Connection, fn: Callable[[sqlite3.Connection], T]
    ) -> T:
        async with self._lock:
            return await asyncio.to_thread(self._transact, conn, fn)

    @staticmethod
    def _transact(conn: sqlite3.Connection, fn: Callable[[sqlite3.Connection], T]) -> T:
        try:
            result = fn(conn)
            conn.commit()
            return result
        except BaseException:
            conn.rollback()
            raise

    def shutdown(self) -> None:
        """Close the connection at process exit."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._state = StorageState.CLOSED
        logger.info("History database closed")
