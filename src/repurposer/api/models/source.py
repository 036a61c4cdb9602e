"""Content source Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from .base import BaseResponse


class CreateSourceRequest(BaseModel):
    """Request to connect a new content source."""

    source_type: Literal["youtube", "rss", "api", "file"] = Field(
        default="youtube",
        description="Kind of source",
    )
    url: str | None = Field(default=None, description="Channel, video or feed URL")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Initial metadata such as the channel title",
    )


class UpdateStatusRequest(BaseModel):
    """Request to move a source to a new status."""

    status: str = Field(description="'pending', 'processing', 'completed' or 'error'")


class SourceResponse(BaseResponse):
    """A content source."""

    source_id: UUID
    user_id: str
    source_type: str
    url: str | None = None
    video_id: str | None = Field(default=None, description="Video whose transcript the source uses")
    status: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("source_metadata", "metadata"),
    )
    created_at: datetime
    updated_at: datetime


class HistoryEntryResponse(BaseResponse):
    """One processing history entry."""

    history_id: UUID
    source_id: UUID
    action: str
    status: str
    details: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("history_metadata", "metadata"),
    )
    created_at: datetime
