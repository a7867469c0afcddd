# image_history/interfaces/api/main.py
"""FastAPI application exposing the image history gallery.

The UI posts every accepted generate/edit/upscale result here, lists the
gallery, and asks for freshly produced result URLs to be preloaded.
History writes are fire-and-forget background tasks.
"""

import logging
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import BackgroundTasks, FastAPI, HTTPException, Request, Response
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Load environment variables from .env file
load_dotenv()

from image_history.config import settings  # noqa: E402
from image_history.core.history.models import HistoryKind  # noqa: E402
from image_history.core.history.service import HistoryStore  # noqa: E402
from image_history.core.history.storage import StorageContext  # noqa: E402
from image_history.core.lifecycle import LifecycleManager  # noqa: E402
from image_history.core.media.preload import PreloadCache  # noqa: E402
from image_history.interfaces.api.dependencies import (  # noqa: E402
    ApiKey,
    Cache,
    Store,
    get_rate_limit_string,
    limiter,
)
from image_history.interfaces.api.schemas import (  # noqa: E402
    CountResponse,
    HistoryItemResponse,
    PreloadRequest,
    PreloadResponse,
    SaveRequest,
    SaveResponse,
    StatusResponse,
)
from image_history.utils.http import close_http_client  # noqa: E402
from image_history.utils.logging import (  # noqa: E402
    configure_structured_logging,
    set_request_id,
)
from image_history.utils.observability import setup_logfire  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    configure_structured_logging(settings.log_level)
    setup_logfire()

    storage = StorageContext(settings.history_db_path)
    app.state.history_store = HistoryStore(
        storage, max_items=settings.max_history_items
    )
    app.state.preload_cache = PreloadCache(max_entries=settings.preload_limit)

    lifecycle = LifecycleManager()
    lifecycle.register("storage", storage)
    lifecycle.register("http_client", close_http_client)
    app.state.lifecycle = lifecycle

    yield

    await lifecycle.shutdown()
    logger.info("Shutting down...")


app = FastAPI(
    title="Image History API",
    description="Durable history and preload cache for generated images",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def correlation_id(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line of a request with a correlation id."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    set_request_id(request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.post("/history", response_model=SaveResponse, status_code=202)
@limiter.limit(get_rate_limit_string)
async def save_history(
    request: Request,
    save_request: SaveRequest,
    background_tasks: BackgroundTasks,
    store: Store,
    _api_key: ApiKey,
) -> SaveResponse:
    """Record an accepted result.

    The image is converted and stored in the background; failures only
    show up in the logs.
    """
    background_tasks.add_task(
        store.put,
        save_request.kind,
        save_request.source_url,
        save_request.prompt,
        save_request.parameters,
    )
    return SaveResponse(status="accepted")


@app.get("/history", response_model=list[HistoryItemResponse])
@limiter.limit(get_rate_limit_string)
async def list_history(
    request: Request,
    store: Store,
    _api_key: ApiKey,
    kind: HistoryKind | None = None,
) -> list[HistoryItemResponse]:
    """List history newest first, optionally filtered by kind."""
    records = await store.list(kind)
    return [HistoryItemResponse.from_record(record) for record in records]


@app.get("/history/count", response_model=CountResponse)
@limiter.limit(get_rate_limit_string)
async def count_history(
    request: Request, store: Store, _api_key: ApiKey
) -> CountResponse:
    """Number of stored history records."""
    return CountResponse(count=await store.count())


@app.get("/history/{record_id}", response_model=HistoryItemResponse)
@limiter.limit(get_rate_limit_string)
async def get_history_item(
    request: Request, record_id: str, store: Store, _api_key: ApiKey
) -> HistoryItemResponse:
    """Get a single history record.

    Raises:
        HTTPException: If the record does not exist (or the store is down).
    """
    record = await store.get(record_id)
    if record is None:
        raise HTTPException(
            status_code=404, detail=f"History item {record_id} not found"
        )
    return HistoryItemResponse.from_record(record)


@app.delete("/history/{record_id}", response_model=StatusResponse)
@limiter.limit(get_rate_limit_string)
async def delete_history_item(
    request: Request, record_id: str, store: Store, _api_key: ApiKey
) -> StatusResponse:
    """Delete a single history record (idempotent)."""
    await store.delete(record_id)
    return StatusResponse(status="deleted")


@app.delete("/history", response_model=StatusResponse)
@limiter.limit(get_rate_limit_string)
async def clear_history(
    request: Request, store: Store, _api_key: ApiKey
) -> StatusResponse:
    """Delete every history record."""
    await store.clear()
    return StatusResponse(status="cleared")


@app.post("/preload", response_model=PreloadResponse)
@limiter.limit(get_rate_limit_string)
async def preload_images(
    request: Request,
    preload_request: PreloadRequest,
    cache: Cache,
    _api_key: ApiKey,
) -> PreloadResponse:
    """Warm the preload cache with a batch of result URLs."""
    urls = preload_request.urls
    await cache.warm_all(urls)
    return PreloadResponse(
        cached=[url for url in urls if cache.has(url)],
        missing=[url for url in urls if not cache.has(url)],
        size=cache.size(),
    )


@app.get("/health")
@limiter.limit(get_rate_limit_string)
async def health_check(request: Request) -> dict[str, Any]:
    """Health check endpoint.

    Returns:
        Dictionary with health status and component availability.
    """
    return {
        "status": "healthy",
        "history_ready": getattr(app.state, "history_store", None) is not None,
        "preload_cache_size": (
            app.state.preload_cache.size()
            if getattr(app.state, "preload_cache", None) is not None
            else 0
        ),
    }
