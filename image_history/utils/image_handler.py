# image_history/utils/image_handler.py
"""Image handling utilities.

Detection, parsing and encoding of self-contained ``data:`` URIs, plus the
ImageData container used as the handle for fetched images.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:"
DEFAULT_MIME_TYPE = "application/octet-stream"

# data:[<mime>][;param=value]*;base64,<payload>
_DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[^;,]*)(?P<params>(?:;[^;,]*)*?);base64,(?P<payload>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class ImageData:
    """Container for fetched or decoded image bytes.

    Attributes:
        data: Raw image bytes.
        mime_type: MIME type of the image (e.g., "image/png").
        source: URL the bytes were fetched from, if any.
    """

    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE
    source: str | None = None

    @property
    def extension(self) -> str:
        """Get file extension from MIME type."""
        # image/png -> png, image/jpeg -> jpeg
        return self.mime_type.split("/")[-1] if "/" in self.mime_type else "bin"

    @property
    def is_image(self) -> bool:
        """Check whether the MIME type declares an image."""
        return self.mime_type.startswith("image/")

    def to_data_uri(self) -> str:
        """Convert to data URI format for embedding in HTML/JSON."""
        b64 = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{b64}"


def is_data_uri(value: str) -> bool:
    """Check if a string already embeds its bytes.

    Args:
        value: URL or data URI.

    Returns:
        True if the value is a data URI and needs no network access.
    """
    return value.startswith(DATA_URI_PREFIX)


def normalize_mime_type(content_type: str | None) -> str:
    """Strip parameters from a Content-Type header value.

    Args:
        content_type: Raw header value (e.g. "image/png; charset=binary").

    Returns:
        Bare MIME type, or application/octet-stream when missing.
    """
    if not content_type:
        return DEFAULT_MIME_TYPE
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime or DEFAULT_MIME_TYPE


def parse_data_uri(value: str) -> ImageData | None:
    """Decode a base64 data URI into ImageData.

    Args:
        value: String of the form data:<mime>;base64,<payload>.

    Returns:
        ImageData with the decoded bytes, or None if the value is not a
        base64 data URI or the payload is corrupt.
    """
    match = _DATA_URI_PATTERN.match(value)
    if match is None:
        return None

    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("Failed to decode data URI payload: %s", e)
        return None

    return ImageData(data=data, mime_type=match.group("mime") or DEFAULT_MIME_TYPE)
