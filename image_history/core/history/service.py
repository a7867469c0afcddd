# image_history/core/history/service.py
"""Durable, capacity-bounded image history.

HistoryStore is the boundary the UI talks to. Every method always
completes: failures are logged with their error kind and turned into the
empty/no-op default, so history stays best-effort and never breaks the
caller.

Example:
    >>> storage = StorageContext("data/history.db")
    >>> store = HistoryStore(storage)
    >>> await store.put(HistoryKind.GENERATE, "https://cdn.example/a.png", "a cat")
    >>> [record.prompt for record in await store.list()]
    ['a cat']
"""

import logging
import secrets
import string
from collections.abc import Callable
from typing import Any

import httpx

from image_history.core.errors import Err, Result
from image_history.core.history.models import HistoryKind, HistoryRecord, now_millis
from image_history.core.history.repository import HistoryRepository
from image_history.core.history.storage import StorageContext
from image_history.core.media.conversion import to_durable

logger = logging.getLogger(__name__)

MAX_HISTORY_ITEMS = 50

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9


def generate_record_id(created_at: int) -> str:
    """Build a record id from a timestamp and a random base36 suffix."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{created_at}-{suffix}"


class HistoryStore:
    """Best-effort history of generated, edited and upscaled images.

    Attributes:
        repository: Result-returning data access layer.
        max_items: Retention cap applied after every put.
    """

    def __init__(
        self,
        storage: StorageContext,
        max_items: int = MAX_HISTORY_ITEMS,
        clock: Callable[[], int] = now_millis,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HistoryStore.

        Args:
            storage: Shared storage context.
            max_items: Number of newest records kept by retention cleanup.
            clock: Source of epoch-millisecond timestamps.
            client: Optional httpx client used for URL conversion.
        """
        self.repository = HistoryRepository(storage)
        self.max_items = max_items
        self._clock = clock
        self._client = client

    def _report(self, operation: str, error: Err) -> None:
        logger.error(
            "History %s failed: %s",
            operation,
            error.message,
            exc_info=error.cause,
            extra={"operation": operation, "error_kind": error.kind.value},
        )

    def _unwrap(self, operation: str, result: Result[Any], default: Any) -> Any:
        if isinstance(result, Err):
            self._report(operation, result)
            return default
        return result.value

    async def put(
        self,
        kind: HistoryKind | str,
        source_url: str,
        prompt: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> None:
        """Record a finished operation.

        Converts ``source_url`` to a data URI, writes a new record and then
        trims the history to ``max_items``. Never raises.

        Args:
            kind: Operation that produced the image.
            source_url: Result image URL or data URI.
            prompt: Prompt text, if any.
            parameters: Generation parameters to echo back later.
        """
        try:
            kind = HistoryKind(kind)
        except ValueError:
            logger.error(
                "Unknown history kind %r, entry dropped",
                kind,
                extra={"operation": "put"},
            )
            return

        image_data = await to_durable(source_url, client=self._client)
        created_at = self._clock()
        record = HistoryRecord(
            id=generate_record_id(created_at),
            kind=kind,
            prompt=prompt,
            image_data=image_data,
            thumbnail_data=image_data,
            created_at=created_at,
            parameters=parameters,
        )

        result = await self.repository.insert(record)
        if isinstance(result, Err):
            self._report("put", result)
            return

        logger.debug("Saved %s to history as %s", kind.value, record.id)
        await self._cleanup()

    async def get(self, record_id: str) -> HistoryRecord | None:
        """Look up a record by id; None on miss or failure."""
        return self._unwrap("get", await self.repository.get(record_id), None)

    async def delete(self, record_id: str) -> None:
        """Delete a record. Deleting an unknown id is a no-op."""
        self._unwrap("delete", await self.repository.delete(record_id), None)

    async def clear(self) -> None:
        """Delete every record."""
        result = await self.repository.clear()
        if isinstance(result, Err):
            self._report("clear", result)
            return
        logger.info("History cleared")

    async def count(self) -> int:
        """Number of stored records; 0 on failure."""
        return self._unwrap("count", await self.repository.count(), 0)

    async def _cleanup(self) -> None:
        """Delete every record older than the newest ``max_items``.

        Read-then-delete, not a single transaction. Racing puts may both
        trim the same records, which is harmless since delete is idempotent.
        """
        records = await self.list()
        if len(records) <= self.max_items:
            return

        excess = records[self.max_items :]
        for record in excess:
            await self.delete(record.id)
        logger.info(
            "Evicted %d old history records",
            len(excess),
            extra={"operation": "cleanup"},
        )

    async def list(self, kind: HistoryKind | str | None = None) -> list[HistoryRecord]:
        """All records, newest first.

        Args:
            kind: Optional filter on the producing operation.

        Returns:
            Records ordered by created_at descending; empty when the store
            is unavailable.
        """
        if kind is not None:
            try:
                kind = HistoryKind(kind)
            except ValueError:
                logger.warning("Unknown history kind %r", kind)
                return []
        return self._unwrap("list", await self.repository.list(kind), [])

