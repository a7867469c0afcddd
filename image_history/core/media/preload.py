# image_history/core/media/preload.py
"""In-memory preload cache for result images.

Keeps fetched images for the lifetime of the process so that browsing
between results, and later viewing them from history, needs no second
network round trip.

The cache is unbounded by default: every warmed URL stays until clear().
Passing ``max_entries`` turns it into a least-recently-used cache.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Iterable

import httpx

from image_history.core.errors import ErrorKind, PreloadError
from image_history.utils.http import fetch_image
from image_history.utils.image_handler import (
    DEFAULT_MIME_TYPE,
    ImageData,
    is_data_uri,
    parse_data_uri,
)

logger = logging.getLogger(__name__)


class PreloadCache:
    """Map from remote URL to an already-fetched image.

    Attributes:
        max_entries: Optional LRU bound; None keeps every entry.
    """

    def __init__(
        self,
        max_entries: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.max_entries = max_entries
        self._client = client
        self._entries: OrderedDict[str, ImageData] = OrderedDict()

    async def warm(self, url: str) -> None:
        """Fetch and cache one image.

        Returns immediately for cached URLs and data URIs.

        Args:
            url: Remote image URL.

        Raises:
            PreloadError: If the image could not be fetched or is not an image.
        """
        if url in self._entries or is_data_uri(url):
            return

        try:
            image = await fetch_image(url, client=self._client)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise PreloadError(url, str(e)) from e

        if not image.is_image and image.mime_type != DEFAULT_MIME_TYPE:
            raise PreloadError(url, f"unexpected content type {image.mime_type}")

        self._store(url, image)

    async def warm_all(self, urls: Iterable[str]) -> None:
        """Warm every URL concurrently; never raises.

        Each URL succeeds or fails on its own.

        Args:
            urls: Remote image URLs.
        """
        urls = list(urls)
        results = await asyncio.gather(
            *(self.warm(url) for url in urls), return_exceptions=True
        )
        for url, result in zip(urls, results):
            if isinstance(result, Exception):
                logger.debug(
                    "Preload failed: %s",
                    result,
                    extra={"error_kind": ErrorKind.NETWORK_FAILURE.value, "url": url},
                )

    def has(self, url: str) -> bool:
        """Check if an image can be displayed without a network fetch."""
        return url in self._entries or is_data_uri(url)

    def get(self, url: str) -> ImageData | None:
        """Get the cached image for a URL.

        Data URIs are decoded on the fly rather than cached.

        Args:
            url: Remote image URL or data URI.

        Returns:
            ImageData, or None if the URL has not been warmed.
        """
        if is_data_uri(url):
            return parse_data_uri(url)

        image = self._entries.get(url)
        if image is not None and self.max_entries is not None:
            self._entries.move_to_end(url)
        return image

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def size(self) -> int:
        """Number of cached entries."""
        return len(self._entries)

    def _store(self, url: str, image: ImageData) -> None:
        self._entries[url] = image
        self._entries.move_to_end(url)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted preloaded image %s", evicted)
