"""Tests for the shared storage context."""

import asyncio
import sqlite3
import threading
import time
from pathlib import Path

import pytest

from image_history.core.errors import StorageUnavailableError
from image_history.core.history.storage import (
    SCHEMA_VERSION,
    StorageContext,
    StorageState,
)


class TestStorageLifecycle:
    """Test the UNOPENED -> OPENING -> READY state machine."""

    def test_starts_unopened(self, storage: StorageContext) -> None:
        assert storage.state is StorageState.UNOPENED

    @pytest.mark.asyncio
    async def test_opens_lazily_and_creates_file(
        self, storage: StorageContext, temp_db: str
    ) -> None:
        assert not Path(temp_db).exists()

        await storage.connection()

        assert storage.state is StorageState.READY
        assert Path(temp_db).exists()

    @pytest.mark.asyncio
    async def test_reuses_connection_once_ready(self, storage: StorageContext) -> None:
        first = await storage.connection()
        second = await storage.connection()
        assert first is second

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_open(
        self, storage: StorageContext
    ) -> None:
        calls = 0
        original_connect = storage._connect

        def counting_connect() -> sqlite3.Connection:
            nonlocal calls
            calls += 1
            return original_connect()

        storage._connect = counting_connect  # type: ignore[method-assign]

        connections = await asyncio.gather(*(storage.connection() for _ in range(8)))

        assert calls == 1
        assert all(conn is connections[0] for conn in connections)
        assert storage.state is StorageState.READY

    @pytest.mark.asyncio
    async def test_state_is_opening_while_open_in_flight(
        self, storage: StorageContext
    ) -> None:
        pending = asyncio.ensure_future(storage.connection())
        await asyncio.sleep(0)

        assert storage.state is StorageState.OPENING

        await pending
        assert storage.state is StorageState.READY

    @pytest.mark.asyncio
    async def test_failed_open_raises_and_returns_to_unopened(
        self, unavailable_storage: StorageContext
    ) -> None:
        with pytest.raises(StorageUnavailableError):
            await unavailable_storage.connection()

        assert unavailable_storage.state is StorageState.UNOPENED

    @pytest.mark.asyncio
    async def test_retry_after_failed_open(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        context = StorageContext(str(blocker / "history.db"))

        with pytest.raises(StorageUnavailableError):
            await context.connection()

        blocker.unlink()
        await context.connection()

        assert context.state is StorageState.READY
        context.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_path_is_unavailable_and_retryable(
        self, temp_db: str
    ) -> None:
        context = StorageContext("bad\0path/history.db")

        with pytest.raises(StorageUnavailableError):
            await context.connection()
        assert context.state is StorageState.UNOPENED

        context.db_path = temp_db
        await context.connection()

        assert context.state is StorageState.READY
        context.shutdown()

    @pytest.mark.asyncio
    async def test_concurrent_waiters_all_see_failure(
        self, unavailable_storage: StorageContext
    ) -> None:
        results = await asyncio.gather(
            *(unavailable_storage.connection() for _ in range(3)),
            return_exceptions=True,
        )
        assert all(isinstance(r, StorageUnavailableError) for r in results)

    @pytest.mark.asyncio
    async def test_shutdown_closes_for_good(self, storage: StorageContext) -> None:
        await storage.connection()
        storage.shutdown()

        assert storage.state is StorageState.CLOSED
        with pytest.raises(StorageUnavailableError):
            await storage.connection()


class TestSchema:
    """Test schema creation on first open."""

    @pytest.mark.asyncio
    async def test_creates_table_and_indexes(self, storage: StorageContext) -> None:
        def _names(conn: sqlite3.Connection) -> set[str]:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type IN ('table', 'index')"
            ).fetchall()
            return {row[0] for row in rows}

        names = await storage.run(_names)

        assert "history" in names
        assert "idx_history_created_at" in names
        assert "idx_history_kind" in names

    @pytest.mark.asyncio
    async def test_sets_schema_version(self, storage: StorageContext) -> None:
        version = await storage.run(
            lambda conn: conn.execute("PRAGMA user_version").fetchone()[0]
        )
        assert version == SCHEMA_VERSION

    @pytest.mark.asyncio
    async def test_reopen_keeps_existing_rows(self, temp_db: str) -> None:
        first = StorageContext(temp_db)
        await first.run(
            lambda conn: conn.execute(
                "INSERT INTO history (id, kind, image_data, created_at) "
                "VALUES ('1-a', 'generate', 'data:,', 1)"
            )
        )
        first.shutdown()

        second = StorageContext(temp_db)
        count = await second.run(
            lambda conn: conn.execute("SELECT COUNT(*) FROM history").fetchone()[0]
        )
        second.shutdown()

        assert count == 1


class TestTransactions:
    """Test commit/rollback behaviour of run()."""

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, storage: StorageContext) -> None:
        def _insert_then_fail(conn: sqlite3.Connection) -> None:
            conn.execute(
                "INSERT INTO history (id, kind, image_data, created_at) "
                "VALUES ('1-a', 'generate', 'data:,', 1)"
            )
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await storage.run(_insert_then_fail)

        count = await storage.run(
            lambda conn: conn.execute("SELECT COUNT(*) FROM history").fetchone()[0]
        )
        assert count == 0

    @pytest.mark.asyncio
    async def test_failed_transaction_does_not_poison_later_ones(
        self, storage: StorageContext
    ) -> None:
        with pytest.raises(sqlite3.OperationalError):
            await storage.run(lambda conn: conn.execute("SELECT * FROM nope"))

        count = await storage.run(
            lambda conn: conn.execute("SELECT COUNT(*) FROM history").fetchone()[0]
        )
        assert count == 0

    @pytest.mark.asyncio
    async def test_cancelled_caller_keeps_transactions_serialized(
        self, storage: StorageContext
    ) -> None:
        active = 0
        overlap: list[int] = []
        guard = threading.Lock()

        def _slow(conn: sqlite3.Connection) -> None:
            nonlocal active
            with guard:
                active += 1
                overlap.append(active)
            time.sleep(0.2)
            with guard:
                active -= 1

        await storage.connection()
        first = asyncio.ensure_future(storage.run(_slow))
        await asyncio.sleep(0.05)
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        await storage.run(_slow)

        assert overlap == [1, 1]
