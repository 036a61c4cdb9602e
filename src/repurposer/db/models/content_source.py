"""Content source SQLAlchemy model."""

from typing import Any
from uuid import UUID

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, generate_uuid

SOURCE_TYPES = ("youtube", "rss", "api", "file")
SOURCE_STATUSES = ("pending", "processing", "completed", "error")


class ContentSource(Base, TimestampMixin):
    """A connected channel, video or playlist owned by a user."""

    __tablename__ = "ContentSources"

    source_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    source_type: Mapped[str] = mapped_column(
        String(20),
        default="youtube",
        nullable=False,
        comment="Source type: 'youtube', 'rss', 'api' or 'file'",
    )
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_id: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Video whose transcript this source generates from",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default="pending",
        nullable=False,
        comment="Status: 'pending', 'processing', 'completed' or 'error'",
    )
    # "metadata" is reserved on declarative classes
    source_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        default=dict,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_sources_user_created", "user_id", "created_at"),
        Index("ix_sources_status", "status"),
        Index("ix_sources_video", "video_id"),
    )
