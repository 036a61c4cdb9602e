"""YouTube Data API response shapes and the normalized results built from them.

Raw ``*Item`` models mirror the API's JSON and are validated as soon as a
response arrives. The result models below them are what the gateway returns.
"""

from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ============================================================================
# Raw API shapes
# ============================================================================


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Thumbnail(_ApiModel):
    url: str | None = None


class Snippet(_ApiModel):
    title: str = ""
    description: str = ""
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)
    published_at: str | None = Field(default=None, alias="publishedAt")
    channel_id: str | None = Field(default=None, alias="channelId")
    channel_title: str | None = Field(default=None, alias="channelTitle")
    custom_url: str | None = Field(default=None, alias="customUrl")
    country: str | None = None
    tags: list[str] = Field(default_factory=list)
    category_id: str | None = Field(default=None, alias="categoryId")
    default_language: str | None = Field(default=None, alias="defaultLanguage")
    default_audio_language: str | None = Field(default=None, alias="defaultAudioLanguage")

    def thumbnail_url(self, *sizes: str) -> str | None:
        """Return the first available thumbnail URL among ``sizes``."""
        for size in sizes:
            thumb = self.thumbnails.get(size)
            if thumb and thumb.url:
                return thumb.url
        return None


class ChannelResourceId(_ApiModel):
    kind: Literal["youtube#channel"]
    channel_id: str = Field(alias="channelId")


class VideoResourceId(_ApiModel):
    kind: Literal["youtube#video"]
    video_id: str = Field(alias="videoId")


class PlaylistResourceId(_ApiModel):
    kind: Literal["youtube#playlist"]
    playlist_id: str = Field(alias="playlistId")


ResourceId = Annotated[
    Union[ChannelResourceId, VideoResourceId, PlaylistResourceId],
    Field(discriminator="kind"),
]


class SearchItem(_ApiModel):
    id: ResourceId
    snippet: Snippet = Field(default_factory=Snippet)


class ChannelItem(_ApiModel):
    id: str
    snippet: Snippet = Field(default_factory=Snippet)
    statistics: dict[str, Any] = Field(default_factory=dict)
    branding_settings: dict[str, Any] = Field(default_factory=dict, alias="brandingSettings")
    content_details: dict[str, Any] = Field(default_factory=dict, alias="contentDetails")


class VideoItem(_ApiModel):
    id: str
    snippet: Snippet = Field(default_factory=Snippet)
    statistics: dict[str, Any] = Field(default_factory=dict)
    content_details: dict[str, Any] = Field(default_factory=dict, alias="contentDetails")
    topic_details: dict[str, Any] = Field(default_factory=dict, alias="topicDetails")


class PlaylistItem(_ApiModel):
    id: str
    snippet: Snippet = Field(default_factory=Snippet)
    content_details: dict[str, Any] = Field(default_factory=dict, alias="contentDetails")


class PlaylistEntryDetails(_ApiModel):
    video_id: str = Field(alias="videoId")


class PlaylistEntry(_ApiModel):
    snippet: Snippet = Field(default_factory=Snippet)
    content_details: PlaylistEntryDetails = Field(alias="contentDetails")


class ListResponse(_ApiModel, Generic[T]):
    items: list[T] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")


# ============================================================================
# Normalized results
# ============================================================================


class ChannelSearchResult(BaseModel):
    """A channel search hit joined with its statistics."""

    id: str
    title: str
    description: str = ""
    thumbnail: str | None = None
    statistics: dict[str, Any] = Field(default_factory=dict)
    banner: str | None = None
    custom_url: str | None = None
    country: str | None = None
    published_at: str | None = None


class PlaylistSummary(BaseModel):
    id: str
    title: str
    description: str = ""
    thumbnail: str | None = None
    item_count: int = 0
    published_at: str | None = None


class VideoSummary(BaseModel):
    id: str
    title: str
    description: str = ""
    thumbnail: str | None = None
    published_at: str | None = None
    statistics: dict[str, Any] = Field(default_factory=dict)


class ChannelDetails(BaseModel):
    """Channel profile with its playlists and most recent uploads."""

    id: str
    title: str
    description: str = ""
    thumbnail: str | None = None
    banner: str | None = None
    subscriber_count: str | None = None
    video_count: str | None = None
    view_count: str | None = None
    published_at: str | None = None
    country: str | None = None
    custom_url: str | None = None
    keywords: list[str] = Field(default_factory=list)
    topic: str = "videos"
    featured_playlist_id: str | None = None
    playlists: list[PlaylistSummary] = Field(default_factory=list)
    recent_videos: list[VideoSummary] = Field(default_factory=list)


class VideoStatistics(BaseModel):
    view_count: str | None = None
    like_count: str | None = None
    comment_count: str | None = None
    channel_subscriber_count: str | None = None


class VideoDetails(BaseModel):
    """Video metadata used for extraction and token costing."""

    id: str
    title: str
    description: str = ""
    published_at: str | None = None
    channel_id: str | None = None
    channel_title: str | None = None
    channel_thumbnail: str | None = None
    thumbnail: str | None = None
    duration_seconds: int = 0
    statistics: VideoStatistics = Field(default_factory=VideoStatistics)
    topics: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    language: str | None = None


class PlaylistPage(BaseModel):
    items: list[VideoSummary] = Field(default_factory=list)
    next_page_token: str | None = None
