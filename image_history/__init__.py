"""Local media persistence and cache layer for image generation results."""

__version__ = "1.0.0"
