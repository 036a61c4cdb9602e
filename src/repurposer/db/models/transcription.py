"""Transcription SQLAlchemy model."""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, generate_uuid


class Transcription(Base, TimestampMixin):
    """Raw and structured transcript of one video.

    Written once per video by the transcribe worker and never updated.
    """

    __tablename__ = "ContentTranscriptions"

    content_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    source_id: Mapped[UUID] = mapped_column(
        ForeignKey("ContentSources.source_id"),
        nullable=False,
    )
    video_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        comment="YouTube video ID",
    )
    raw_text: Mapped[str] = mapped_column(Text, nullable=False)
    structured_html: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_transcriptions_source", "source_id"),
    )

    def as_dict(self) -> dict[str, str | None]:
        """Return the transcript in its raw/html JSON shape."""
        return {"raw": self.raw_text, "html": self.structured_html}
