# image_history/interfaces/api/dependencies.py
"""FastAPI dependencies: shared components, API key check, rate limiting."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from slowapi import Limiter
from slowapi.util import get_remote_address

from image_history.config import settings
from image_history.core.history.service import HistoryStore
from image_history.core.media.preload import PreloadCache

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

limiter = Limiter(key_func=get_remote_address)


def get_history_store(request: Request) -> HistoryStore:
    """Get the HistoryStore built at application startup."""
    store = getattr(request.app.state, "history_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="History store not initialized.",
        )
    return store


def get_preload_cache(request: Request) -> PreloadCache:
    """Get the PreloadCache built at application startup."""
    cache = getattr(request.app.state, "preload_cache", None)
    if cache is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preload cache not initialized.",
        )
    return cache


def verify_api_key(api_key: Annotated[str | None, Depends(api_key_header)]) -> str:
    """Check the X-API-Key header against API_AUTH_KEY.

    Authentication is disabled when no key is configured.

    Raises:
        HTTPException: 401 if the header is missing, 403 if it is wrong.
    """
    expected = settings.api_auth_key
    if not expected:
        return "auth_disabled"
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Include X-API-Key header.",
        )
    if not secrets.compare_digest(api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key.",
        )
    return api_key


def get_rate_limit_string() -> str:
    """Rate limit for every endpoint, e.g. "60/minute"."""
    return f"{settings.api_rate_limit}/minute"


ApiKey = Annotated[str, Depends(verify_api_key)]
Store = Annotated[HistoryStore, Depends(get_history_store)]
Cache = Annotated[PreloadCache, Depends(get_preload_cache)]
