# tests/conftest.py
"""Shared pytest fixtures for all test modules.

Provides common fixtures for:
- Temporary database paths and storage contexts
- A controllable millisecond clock
- An in-process image server (httpx.MockTransport)
"""

from collections.abc import Generator
from pathlib import Path

import httpx
import pytest

from image_history.core.history.service import HistoryStore
from image_history.core.history.storage import StorageContext
from support import FakeClock, ImageServer


@pytest.fixture
def temp_db(tmp_path: Path) -> str:
    """Path to a fresh SQLite database file."""
    return str(tmp_path / "data" / "history.db")


@pytest.fixture
def storage(temp_db: str) -> Generator[StorageContext, None, None]:
    """Unopened storage context on a temporary database."""
    context = StorageContext(temp_db)
    yield context
    context.shutdown()


@pytest.fixture
def unavailable_storage(tmp_path: Path) -> StorageContext:
    """Storage context whose database directory can never be created."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    return StorageContext(str(blocker / "history.db"))


@pytest.fixture
def clock() -> FakeClock:
    """Strictly increasing clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def image_server() -> ImageServer:
    """In-process image server recording every request."""
    return ImageServer()


@pytest.fixture
def http_client(image_server: ImageServer) -> httpx.AsyncClient:
    """httpx client routed to the in-process image server."""
    return httpx.AsyncClient(transport=httpx.MockTransport(image_server))


@pytest.fixture
def store(
    storage: StorageContext, clock: FakeClock, http_client: httpx.AsyncClient
) -> HistoryStore:
    """History store with a controllable clock and mocked network."""
    return HistoryStore(storage, clock=clock, client=http_client)

