# image_history/core/errors.py
"""Error taxonomy and the internal Result type.

Internal layers return ``Ok``/``Err`` instead of raising so that failures
stay visible to tests and logs. Only the boundary adapters translate an
``Err`` into the empty/no-op defaults the callers rely on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Classes of failure in the history and cache layer."""

    STORAGE_UNAVAILABLE = "storage_unavailable"
    TRANSACTION_FAILURE = "transaction_failure"
    CONVERSION_FAILURE = "conversion_failure"
    NETWORK_FAILURE = "network_failure"


class StorageUnavailableError(Exception):
    """Raised when the history database cannot be opened."""


class PreloadError(Exception):
    """Raised when a single URL could not be warmed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to preload image: {url} ({reason})")
        self.url = url
        self.reason = reason


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome.

    Attributes:
        kind: Error class.
        message: Human-readable description.
        cause: Underlying exception, if any.
    """

    kind: ErrorKind
    message: str
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
