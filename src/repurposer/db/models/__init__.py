"""SQLAlchemy database models for the content repurposer."""

from .api_cache_entry import ApiCacheEntry
from .base import Base, TimestampMixin, generate_uuid, utcnow
from .content_source import SOURCE_STATUSES, SOURCE_TYPES, ContentSource
from .generated_content import ContentExtraction, GeneratedContent
from .processing_history import ProcessingHistoryEntry
from .subscription import SubscriptionPlan, UserSubscription
from .transcription import Transcription
from .usage_record import UsageRecord

__all__ = [
    "SOURCE_STATUSES",
    "SOURCE_TYPES",
    "ApiCacheEntry",
    "Base",
    "ContentExtraction",
    "ContentSource",
    "GeneratedContent",
    "ProcessingHistoryEntry",
    "SubscriptionPlan",
    "TimestampMixin",
    "Transcription",
    "UsageRecord",
    "UserSubscription",
    "generate_uuid",
    "utcnow",
]
