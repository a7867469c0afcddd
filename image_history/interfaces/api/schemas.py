# image_history/interfaces/api/schemas.py
"""Pydantic models for FastAPI request/response validation.

Defines request and response schemas for the history gallery endpoints.
"""

from typing import Any

from pydantic import BaseModel, Field

from image_history.core.history.models import (
    HistoryKind,
    HistoryRecord,
    format_relative_time,
)


class SaveRequest(BaseModel):
    """Request body for POST /history endpoint.

    Attributes:
        kind: Operation that produced the image.
        source_url: Result image URL or data URI.
        prompt: Prompt text associated with the result.
        parameters: Generation parameters (model id, size, aspect ratio).
    """

    kind: HistoryKind = Field(..., description="generate, edit or upscale")
    source_url: str = Field(..., description="Result image URL or data URI")
    prompt: str | None = Field(None, description="Prompt text, if any")
    parameters: dict[str, Any] | None = Field(
        None, description="Generation parameters to echo back"
    )


class SaveResponse(BaseModel):
    """Response body for POST /history endpoint."""

    status: str = Field(..., description="Always 'accepted'")


class HistoryItemResponse(BaseModel):
    """Response body for history GET endpoints.

    Attributes:
        id: Record identifier.
        kind: Operation that produced the image.
        prompt: Prompt text, if any.
        image_data: Data URI (or the original URL if conversion failed).
        thumbnail_data: Same as image_data.
        created_at: Epoch milliseconds.
        age: Relative age for display ("3m ago").
        parameters: Generation parameters.
    """

    id: str = Field(..., description="Record identifier")
    kind: HistoryKind = Field(..., description="Producing operation")
    prompt: str | None = Field(None, description="Prompt text")
    image_data: str = Field(..., description="Durable image representation")
    thumbnail_data: str | None = Field(None, description="Thumbnail representation")
    created_at: int = Field(..., description="Creation time (epoch millis)")
    age: str = Field(..., description="Relative age for display")
    parameters: dict[str, Any] | None = Field(None, description="Generation parameters")

    @classmethod
    def from_record(
        cls, record: HistoryRecord, now: int | None = None
    ) -> "HistoryItemResponse":
        """Build a response item from a stored record."""
        return cls(
            id=record.id,
            kind=record.kind,
            prompt=record.prompt,
            image_data=record.image_data,
            thumbnail_data=record.thumbnail_data,
            created_at=record.created_at,
            age=format_relative_time(record.created_at, now),
            parameters=record.parameters,
        )


class CountResponse(BaseModel):
    """Response body for GET /history/count endpoint."""

    count: int = Field(..., description="Number of stored records")


class StatusResponse(BaseModel):
    """Generic acknowledgement for DELETE endpoints."""

    status: str = Field(..., description="Operation outcome")


class PreloadRequest(BaseModel):
    """Request body for POST /preload endpoint."""

    urls: list[str] = Field(..., description="Result image URLs to warm")


class PreloadResponse(BaseModel):
    """Response body for POST /preload endpoint.

    Attributes:
        cached: URLs that can now be displayed without a fetch.
        missing: URLs that failed to warm.
        size: Number of entries in the preload cache.
    """

    cached: list[str] = Field(default_factory=list, description="Warm URLs")
    missing: list[str] = Field(default_factory=list, description="URLs that failed")
    size: int = Field(..., description="Preload cache size")
