# image_history/core/history/models.py
"""Data models for the history module."""

import json
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class HistoryKind(str, Enum):
    """Operation that produced a history record."""

    GENERATE = "generate"
    EDIT = "edit"
    UPSCALE = "upscale"


@dataclass(frozen=True)
class HistoryRecord:
    """One persisted memory of a past operation.

    Attributes:
        id: Unique identifier ("<created_at>-<random suffix>").
        kind: Operation that produced the image.
        prompt: Text prompt associated with the result, if any.
        image_data: Durable self-contained representation (data URI).
        thumbnail_data: Currently identical to image_data.
        created_at: Creation time in epoch milliseconds.
        parameters: Free-form echo of generation parameters.
    """

    id: str
    kind: HistoryKind
    image_data: str
    created_at: int
    prompt: str | None = None
    thumbnail_data: str | None = None
    parameters: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary representation of the record.
        """
        return {
            "id": self.id,
            "kind": self.kind.value,
            "prompt": self.prompt,
            "image_data": self.image_data,
            "thumbnail_data": self.thumbnail_data,
            "created_at": self.created_at,
            "parameters": self.parameters,
        }

    @classmethod
    def from_row(cls, row: tuple) -> "HistoryRecord":
        """Create from a database row.

        Args:
            row: Tuple of (id, kind, prompt, image_data, thumbnail_data,
                 created_at, parameters).

        Returns:
            HistoryRecord instance.
        """
        return cls(
            id=row[0],
            kind=HistoryKind(row[1]),
            prompt=row[2],
            image_data=row[3],
            thumbnail_data=row[4],
            created_at=row[5],
            parameters=json.loads(row[6]) if row[6] is not None else None,
        )


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def format_relative_time(created_at: int, now: int | None = None) -> str:
    """Format a timestamp as a short relative age for gallery display.

    Args:
        created_at: Epoch milliseconds.
        now: Reference time in epoch milliseconds (defaults to now).

    Returns:
        "Just now", "5m ago", "3h ago", "2d ago", or an ISO date for
        anything a week old or older.
    """
    reference = now if now is not None else now_millis()
    diff_ms = reference - created_at
    minutes = diff_ms // 60_000
    hours = diff_ms // 3_600_000
    days = diff_ms // 86_400_000

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return datetime.fromtimestamp(created_at / 1000).date().isoformat()
