"""Generated content and extraction SQLAlchemy models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, generate_uuid, utcnow


class GeneratedContent(Base):
    """Output of one generation batch for a source.

    Later generations for the same source add new rows; the newest row is
    the current content.
    """

    __tablename__ = "GeneratedContent"

    content_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    source_id: Mapped[UUID] = mapped_column(
        ForeignKey("ContentSources.source_id"),
        nullable=False,
    )
    formats: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Sorted, comma-joined format names",
    )
    content: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    generation_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        default=dict,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_generated_source_created", "source_id", "created_at"),
    )


class ContentExtraction(Base):
    """Snapshot of video or playlist metadata extracted for a source."""

    __tablename__ = "ContentExtractions"

    extraction_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    source_id: Mapped[UUID] = mapped_column(
        ForeignKey("ContentSources.source_id"),
        nullable=False,
    )
    content_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="'video' or 'playlist'",
    )
    content_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="YouTube video or playlist ID",
    )
    extraction_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        default=dict,
        nullable=False,
    )
    transcript: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_extractions_source_content", "source_id", "content_id"),
    )
