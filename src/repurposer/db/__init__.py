"""Database module."""

from .connection import (
    DatabaseConnection,
    create_engine,
    create_session_factory,
    get_database_url,
    get_db,
    session_scope,
)
from .models import (
    ApiCacheEntry,
    Base,
    ContentExtraction,
    ContentSource,
    GeneratedContent,
    ProcessingHistoryEntry,
    SubscriptionPlan,
    Transcription,
    UsageRecord,
    UserSubscription,
)

__all__ = [
    "ApiCacheEntry",
    "Base",
    "ContentExtraction",
    "ContentSource",
    "DatabaseConnection",
    "GeneratedContent",
    "ProcessingHistoryEntry",
    "SubscriptionPlan",
    "Transcription",
    "UsageRecord",
    "UserSubscription",
    "create_engine",
    "create_session_factory",
    "get_database_url",
    "get_db",
    "session_scope",
]
