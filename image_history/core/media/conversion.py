# image_history/core/media/conversion.py
"""Conversion of remote image URLs into self-contained data URIs.

Remote result URLs are often short-lived or rate-limited, so history
entries store the image bytes inline. Inputs that already embed their
bytes pass through untouched.
"""

import logging

import httpx

from image_history.core.errors import Err, ErrorKind, Ok, Result
from image_history.utils.http import fetch_image
from image_history.utils.image_handler import is_data_uri

logger = logging.getLogger(__name__)


async def convert_to_data_uri(
    source: str, client: httpx.AsyncClient | None = None
) -> Result[str]:
    """Fetch a remote image and encode it as a base64 data URI.

    Args:
        source: Remote URL or an existing data URI.
        client: Optional httpx client (defaults to the shared one).

    Returns:
        Ok with the data URI, or Err(CONVERSION_FAILURE) when the fetch
        fails or returns a non-2xx status.
    """
    if is_data_uri(source):
        return Ok(source)

    try:
        image = await fetch_image(source, client=client)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return Err(ErrorKind.CONVERSION_FAILURE, f"fetch {source}: {e}", e)

    return Ok(image.to_data_uri())


async def to_durable(source: str, client: httpx.AsyncClient | None = None) -> str:
    """Get a durable representation of an image, never raising.

    Falls back to the original input when conversion fails; a history
    entry with a possibly expiring link beats losing the entry.

    Args:
        source: Remote URL or an existing data URI.
        client: Optional httpx client (defaults to the shared one).

    Returns:
        A data URI, or ``source`` unchanged on failure.
    """
    result = await convert_to_data_uri(source, client=client)
    if isinstance(result, Err):
        logger.warning(
            "Keeping original URL, conversion failed: %s",
            result.message,
            extra={"error_kind": result.kind.value, "url": source},
        )
        return source
    return result.value
