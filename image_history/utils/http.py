# image_history/utils/http.py
"""Shared HTTP client for image fetches.

Provides a process-wide httpx.AsyncClient and a plain GET helper used by
the conversion pipeline and the preload cache.
"""

import asyncio
import logging

import httpx

from image_history.config import settings
from image_history.utils.image_handler import ImageData, normalize_mime_type

logger = logging.getLogger(__name__)

# Global httpx client
_client: httpx.AsyncClient | None = None
_client_loop: asyncio.AbstractEventLoop | None = None


async def get_http_client() -> httpx.AsyncClient:
    """Get or create the shared httpx client.

    The client is recreated when the running event loop changes, since
    an AsyncClient's connection pool is bound to the loop it was used on.

    Returns:
        Shared httpx.AsyncClient instance.
    """
    global _client, _client_loop

    try:
        current_loop = asyncio.get_running_loop()
    except RuntimeError:
        current_loop = None

    needs_recreate = (
        _client is None or _client.is_closed or _client_loop is not current_loop
    )

    if needs_recreate:
        if (
            _client is not None
            and not _client.is_closed
            and _client_loop is not current_loop
        ):
            try:
                await _client.aclose()
            except (httpx.HTTPError, RuntimeError) as e:
                logger.debug("Error closing old client: %s", e)

        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.fetch_timeout),
            follow_redirects=True,
        )
        _client_loop = current_loop
        logger.debug("Created new httpx client")

    assert _client is not None
    return _client


async def close_http_client() -> None:
    """Close the shared httpx client."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        _client = None
        logger.debug("Closed httpx client")


async def fetch_image(url: str, client: httpx.AsyncClient | None = None) -> ImageData:
    """Fetch a remote resource as a binary blob.

    Plain GET: no auth headers, no retries.

    Args:
        url: Remote URL to fetch.
        client: Optional client to use instead of the shared one.

    Returns:
        ImageData with the response body and its declared MIME type.

    Raises:
        httpx.HTTPError: On transport failure or a non-2xx status.
    """
    http = client or await get_http_client()
    response = await http.get(url)
    response.raise_for_status()
    return ImageData(
        data=response.content,
        mime_type=normalize_mime_type(response.headers.get("content-type")),
        source=url,
    )
