"""Processing history SQLAlchemy model."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, generate_uuid, utcnow


class ProcessingHistoryEntry(Base):
    """Append-only audit log entry for a source."""

    __tablename__ = "ProcessingHistory"

    history_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    source_id: Mapped[UUID] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="e.g. 'import', 'analysis', 'generation', 'status_update'",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="'success' or 'error'",
    )
    details: Mapped[str] = mapped_column(Text, nullable=False)
    history_metadata: Mapped[dict[str, Any]] = mapped_column(
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
        Index("ix_history_source_created", "source_id", "created_at"),
    )
