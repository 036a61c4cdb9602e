"""Usage record model for tracking per-user token consumption."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, generate_uuid, utcnow


class UsageRecord(Base):
    """Immutable ledger entry; a user's usage is the sum of their records."""

    __tablename__ = "UsageRecords"

    usage_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    source_id: Mapped[UUID | None] = mapped_column(nullable=True)
    tokens_used: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Action charged: 'generation' or 'extraction'",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_usage_user_created", "user_id", "created_at"),
    )
