"""Extraction, transcript and generation Pydantic models."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from .base import BaseResponse


class ExtractRequest(BaseModel):
    """Request to extract a video or playlist into a source."""

    content_type: Literal["video", "playlist"] = Field(description="What content_id refers to")
    content_id: str = Field(min_length=1, description="YouTube video or playlist ID")


class ExtractionResponse(BaseResponse):
    """Extracted metadata and, for videos, the transcript."""

    extraction_id: UUID
    source_id: UUID
    content_type: str
    content_id: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extraction_metadata", "metadata"),
    )
    transcript: dict[str, Any] | None = None
    created_at: datetime


class TranscriptRequest(BaseModel):
    """Request to acquire a video transcript for a source."""

    video_id: str = Field(min_length=1, description="YouTube video ID")


class TranscriptResponse(BaseModel):
    """Outcome of a transcript request."""

    state: str
    run_id: str | None = None
    error: str | None = None
    transcript: dict[str, Any] | None = Field(
        default=None,
        description="Raw and HTML forms when the transcript is available",
    )


class GenerateRequest(BaseModel):
    """Request to generate content from a source's transcript."""

    formats: list[str] = Field(description="Any of 'blog', 'social' and 'newsletter'")
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Per-format options keyed by format name",
    )


class GenerationResponse(BaseResponse):
    """Generated content for each requested format."""

    content_id: UUID
    source_id: UUID
    formats: list[str]
    content: dict[str, Any]
    tokens_used: int
    structured_transcript: str | None = None
    cached: bool = False


class GeneratedContentResponse(BaseResponse):
    """A stored generation batch."""

    content_id: UUID
    source_id: UUID
    formats: str
    content: dict[str, Any]
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("generation_metadata", "metadata"),
    )
    created_at: datetime
