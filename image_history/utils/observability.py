"""Observability configuration with Pydantic Logfire."""

import logging

from image_history.config import settings

logger = logging.getLogger(__name__)


def setup_logfire() -> bool:
    """Configure Logfire for observability.

    Only activates if LOGFIRE_TOKEN environment variable is set.
    Instruments httpx so image fetches show up as spans.

    Returns:
        True if Logfire was configured.
    """
    if not settings.logfire_token:
        return False

    try:
        import logfire

        logfire.configure(token=settings.logfire_token, send_to_logfire="if-token-present")
        logfire.instrument_httpx(capture_all=True)
    except Exception as e:
        # Log but don't fail - observability is optional
        logger.warning("Failed to configure Logfire: %s", str(e))
        return False

    return True
