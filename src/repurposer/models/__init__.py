"""Pydantic models for third-party API payloads."""

from .youtube import (
    ChannelDetails,
    ChannelItem,
    ChannelSearchResult,
    ListResponse,
    PlaylistEntry,
    PlaylistItem,
    PlaylistPage,
    PlaylistSummary,
    SearchItem,
    VideoDetails,
    VideoItem,
    VideoStatistics,
    VideoSummary,
)

__all__ = [
    "ChannelDetails",
    "ChannelItem",
    "ChannelSearchResult",
    "ListResponse",
    "PlaylistEntry",
    "PlaylistItem",
    "PlaylistPage",
    "PlaylistSummary",
    "SearchItem",
    "VideoDetails",
    "VideoItem",
    "VideoStatistics",
    "VideoSummary",
]
