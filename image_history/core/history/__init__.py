"""History module for durable, capacity-bounded image history.

This module provides:
- HistoryKind, HistoryRecord: Data models for stored results
- StorageContext: Shared, lazily opened SQLite handle
- HistoryRepository: Result-returning data access
- HistoryStore: Never-raising boundary used by the UI layer
- MAX_HISTORY_ITEMS: Retention cap
"""

from image_history.core.errors import (
    Err,
    ErrorKind,
    Ok,
    PreloadError,
    Result,
    StorageUnavailableError,
)
from image_history.core.history.models import (
    HistoryKind,
    HistoryRecord,
    format_relative_time,
)
from image_history.core.history.repository import HistoryRepository
from image_history.core.history.service import MAX_HISTORY_ITEMS, HistoryStore
from image_history.core.history.storage import StorageContext, StorageState

__all__ = [
    "Err",
    "ErrorKind",
    "Ok",
    "PreloadError",
    "Result",
    "StorageUnavailableError",
    "HistoryKind",
    "HistoryRecord",
    "format_relative_time",
    "HistoryRepository",
    "HistoryStore",
    "MAX_HISTORY_ITEMS",
    "StorageContext",
    "StorageState",
]
