# image_history/config.py
"""Application configuration using pydantic-settings.

Provides a centralized Settings class for all environment variables
used by the history store, the preload cache and the gallery API.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are loaded from .env file and environment variables.
    Environment variables take precedence over .env file values.
    """

    # History storage
    history_db_path: str = "data/history.db"
    max_history_items: int = 50

    # Network (None = no timeout)
    fetch_timeout: float | None = None

    # Preload cache (0 = unbounded)
    preload_cache_max_entries: int = 0

    # Observability
    logfire_token: str = ""
    log_level: str = "INFO"

    # API Security
    api_auth_key: str = ""  # Required for API access (X-API-Key header)
    api_rate_limit: int = 60  # Requests per minute

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def preload_limit(self) -> int | None:
        """Get the preload cache bound.

        Returns:
            Maximum number of cached entries, or None for an unbounded cache.
        """
        return self.preload_cache_max_entries or None


# Singleton instance - import this in your code
settings = Settings()
