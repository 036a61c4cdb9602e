"""Application services.

``content_service`` depends on the transcribe worker and is imported from its
module directly.
"""

from .llm_service import LLMService, get_llm_service
from .source_service import SourceService, get_source_service
from .usage_service import TokenBalance, UsageLedger, UsagePolicy, get_usage_ledger
from .youtube_service import YouTubeService, get_youtube_service

__all__ = [
    "LLMService",
    "SourceService",
    "TokenBalance",
    "UsageLedger",
    "UsagePolicy",
    "YouTubeService",
    "get_llm_service",
    "get_source_service",
    "get_usage_ledger",
    "get_youtube_service",
]
