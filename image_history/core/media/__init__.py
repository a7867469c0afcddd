"""Media conversion and preload cache."""

from image_history.core.media.conversion import convert_to_data_uri, to_durable
from image_history.core.media.preload import PreloadCache

__all__ = ["convert_to_data_uri", "to_durable", "PreloadCache"]
