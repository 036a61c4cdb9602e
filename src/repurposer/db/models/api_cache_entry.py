"""Persisted tier of the YouTube response cache."""

from typing import Any

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ApiCacheEntry(Base):
    """Cached API response, keyed by the SHA-256 of the cache key."""

    __tablename__ = "ApiCacheEntries"

    key_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    cache_key: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    stored_at: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Epoch seconds when the response was fetched",
    )
