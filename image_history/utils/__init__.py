"""Utility functions for the image history layer."""

from image_history.utils.image_handler import (
    ImageData,
    is_data_uri,
    parse_data_uri,
)
from image_history.utils.logging import (
    configure_structured_logging,
    get_logger,
    get_request_id,
    set_request_id,
)
from image_history.utils.observability import setup_logfire

__all__ = [
    "ImageData",
    "is_data_uri",
    "parse_data_uri",
    "setup_logfire",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "configure_structured_logging",
]
