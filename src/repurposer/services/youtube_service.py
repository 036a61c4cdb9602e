"""YouTube service for fetching channel, video and playlist data.

Wraps the YouTube Data API v3. Every call goes through ``fetch``, which
consults the two-tier response cache and falls back to stale cached data when
the API quota is exhausted.
"""

import re
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..cache import ResponseCache, SqlStore
from ..config import get_settings
from ..db.connection import get_db
from ..errors import InvalidArgument, NotFound, QuotaExceeded, UpstreamError
from ..logging.config import get_logger
from ..models.youtube import (
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

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


def parse_duration(value: str | None) -> int:
    """Convert an ISO 8601 duration such as ``PT1H2M3S`` to seconds.

    Unparseable or missing values count as zero.
    """
    if not value:
        return 0
    match = _DURATION_RE.match(value)
    if not match:
        return 0
    parts = {k: int(v) for k, v in match.groupdict(default="0").items()}
    return parts["days"] * 86400 + parts["hours"] * 3600 + parts["minutes"] * 60 + parts["seconds"]


def _is_quota_error(message: str, reasons: list[str]) -> bool:
    return "quota" in message.lower() or any("quota" in r.lower() for r in reasons)


class YouTubeService:
    """Gateway to the YouTube Data API with response caching."""

    def __init__(
        self,
        api_key: str,
        cache: ResponseCache,
        base_url: str = "https://www.googleapis.com/youtube/v3",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the YouTube service.

        Args:
            api_key: YouTube Data API key.
            cache: Response cache shared by all calls.
            base_url: API root, overridable for tests.
            http_client: Pre-built client; one is created if omitted.
            timeout: Request timeout used when creating the client.
        """
        self.api_key = api_key
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Low-level fetch
    # ------------------------------------------------------------------

    async def fetch(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """Fetch an API endpoint, using the cache where possible.

        Args:
            endpoint: API resource such as ``search`` or ``channels``.
            params: Query parameters, excluding the API key.

        Returns:
            The decoded JSON response.

        Raises:
            QuotaExceeded: Quota is exhausted and nothing is cached for the key.
            UpstreamError: Any other API or transport failure.
        """
        cache_key = self.cache.make_key(endpoint, params)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug("YouTube cache hit", endpoint=endpoint)
            return cached

        if not self.api_key:
            raise UpstreamError("YouTube API request failed: API key is missing")

        try:
            response = await self._client.get(
                f"{self.base_url}/{endpoint}",
                params={"key": self.api_key, **params},
            )
        except httpx.HTTPError as e:
            logger.error("YouTube API transport error", endpoint=endpoint, error=str(e))
            raise UpstreamError(f"YouTube API request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            if response.is_success:
                logger.error("YouTube API returned an undecodable body", endpoint=endpoint)
                raise UpstreamError("YouTube API request failed: invalid JSON response") from e
            data = {}

        error = data.get("error") if isinstance(data, dict) else None
        if response.is_error or error:
            error = error or {}
            message = error.get("message") or f"YouTube API error: {response.reason_phrase}"
            reasons = [e.get("reason", "") for e in error.get("errors", []) if isinstance(e, dict)]

            if _is_quota_error(message, reasons):
                stale = await self.cache.get_stale(cache_key)
                if stale is not None:
                    logger.warning("YouTube quota exceeded, serving stale cache", endpoint=endpoint)
                    return stale
                logger.warning("YouTube quota exceeded with no cached response", endpoint=endpoint)
                raise QuotaExceeded()

            logger.error(
                "YouTube API error",
                endpoint=endpoint,
                status_code=response.status_code,
                error=message,
            )
            raise UpstreamError(f"YouTube API request failed: {message}")

        await self.cache.set(cache_key, data)
        return data

    async def _fetch_list(
        self,
        endpoint: str,
        params: dict[str, str],
        item_model: type[M],
    ) -> ListResponse[M]:
        data = await self.fetch(endpoint, params)
        return self._validate(endpoint, data, item_model)

    async def _fetch_optional(
        self,
        endpoint: str,
        params: dict[str, str],
        item_model: type[M],
    ) -> ListResponse[M]:
        """Fetch a secondary resource whose failure only loses detail."""
        try:
            return await self._fetch_list(endpoint, params, item_model)
        except (UpstreamError, QuotaExceeded) as e:
            logger.warning("Optional YouTube call failed", endpoint=endpoint, error=e.message)
            return ListResponse[item_model]()

    @staticmethod
    def _validate(endpoint: str, data: dict[str, Any], item_model: type[M]) -> ListResponse[M]:
        try:
            return ListResponse[item_model].model_validate(data)
        except ValidationError as e:
            logger.error("Unexpected YouTube response shape", endpoint=endpoint, error=str(e))
            raise UpstreamError(f"YouTube API request failed: unexpected {endpoint} response") from e

    # ------------------------------------------------------------------
    # Composite operations
    # ------------------------------------------------------------------

    async def search_channels(self, query: str) -> list[ChannelSearchResult]:
        """Search channels by name and join the hits with their statistics."""
        if not query or not query.strip():
            raise InvalidArgument("Search query is required")

        search = await self._fetch_list(
            "search",
            {"part": "snippet", "type": "channel", "q": query, "maxResults": "5"},
            SearchItem,
        )
        hits = [item for item in search.items if item.id.kind == "youtube#channel"]
        if not hits:
            return []

        channel_ids = [item.id.channel_id for item in hits]
        channels = await self._fetch_optional(
            "channels",
            {"part": "snippet,statistics,brandingSettings", "id": ",".join(channel_ids)},
            ChannelItem,
        )
        details = {channel.id: channel for channel in channels.items}

        results = []
        for item in hits:
            channel = details.get(item.id.channel_id)
            results.append(
                ChannelSearchResult(
                    id=item.id.channel_id,
                    title=item.snippet.title,
                    description=item.snippet.description,
                    thumbnail=item.snippet.thumbnail_url("high", "default"),
                    statistics=channel.statistics if channel else {},
                    banner=_banner_url(channel) if channel else None,
                    custom_url=channel.snippet.custom_url if channel else None,
                    country=channel.snippet.country if channel else None,
                    published_at=channel.snippet.published_at if channel else None,
                )
            )
        return results

    async def get_channel_details(self, channel_id: str) -> ChannelDetails:
        """Fetch a channel with its playlists and latest uploads."""
        if not channel_id:
            raise InvalidArgument("Channel ID is required")

        channels = await self._fetch_list(
            "channels",
            {"part": "snippet,statistics,brandingSettings,contentDetails", "id": channel_id},
            ChannelItem,
        )
        if not channels.items:
            raise NotFound("Channel not found")
        channel = channels.items[0]

        playlists = await self._fetch_optional(
            "playlists",
            {"part": "snippet,contentDetails", "channelId": channel_id, "maxResults": "10"},
            PlaylistItem,
        )
        latest = await self._fetch_optional(
            "search",
            {
                "part": "snippet",
                "channelId": channel_id,
                "order": "date",
                "type": "video",
                "maxResults": "10",
            },
            SearchItem,
        )
        video_hits = [item for item in latest.items if item.id.kind == "youtube#video"]
        statistics = await self._video_statistics([item.id.video_id for item in video_hits])

        branding_channel = channel.branding_settings.get("channel") or {}
        keywords = branding_channel.get("keywords") or ""

        return ChannelDetails(
            id=channel.id,
            title=channel.snippet.title,
            description=channel.snippet.description,
            thumbnail=channel.snippet.thumbnail_url("high", "default"),
            banner=_banner_url(channel),
            subscriber_count=channel.statistics.get("subscriberCount"),
            video_count=channel.statistics.get("videoCount"),
            view_count=channel.statistics.get("viewCount"),
            published_at=channel.snippet.published_at,
            country=channel.snippet.country,
            custom_url=channel.snippet.custom_url,
            keywords=[k.strip() for k in keywords.split("|") if k.strip()],
            topic=branding_channel.get("defaultTab") or "videos",
            featured_playlist_id=(channel.content_details.get("relatedPlaylists") or {}).get("uploads"),
            playlists=[
                PlaylistSummary(
                    id=playlist.id,
                    title=playlist.snippet.title,
                    description=playlist.snippet.description,
                    thumbnail=playlist.snippet.thumbnail_url("medium"),
                    item_count=int(playlist.content_details.get("itemCount") or 0),
                    published_at=playlist.snippet.published_at,
                )
                for playlist in playlists.items
            ],
            recent_videos=[
                VideoSummary(
                    id=item.id.video_id,
                    title=item.snippet.title,
                    description=item.snippet.description,
                    thumbnail=item.snippet.thumbnail_url("medium"),
                    published_at=item.snippet.published_at,
                    statistics=statistics.get(item.id.video_id, {}),
                )
                for item in video_hits
            ],
        )

    async def get_video_details(self, video_id: str) -> VideoDetails:
        """Fetch a video's metadata, statistics and duration."""
        if not video_id:
            raise InvalidArgument("Video ID is required")

        videos = await self._fetch_list(
            "videos",
            {"part": "snippet,statistics,contentDetails,topicDetails", "id": video_id},
            VideoItem,
        )
        if not videos.items:
            raise NotFound("Video not found")
        video = videos.items[0]

        channel = None
        if video.snippet.channel_id:
            channels = await self._fetch_optional(
                "channels",
                {"part": "snippet,statistics", "id": video.snippet.channel_id},
                ChannelItem,
            )
            channel = channels.items[0] if channels.items else None

        return VideoDetails(
            id=video.id,
            title=video.snippet.title,
            description=video.snippet.description,
            published_at=video.snippet.published_at,
            channel_id=video.snippet.channel_id,
            channel_title=video.snippet.channel_title,
            channel_thumbnail=channel.snippet.thumbnail_url("default") if channel else None,
            thumbnail=video.snippet.thumbnail_url("high", "default"),
            duration_seconds=parse_duration(video.content_details.get("duration")),
            statistics=VideoStatistics(
                view_count=video.statistics.get("viewCount"),
                like_count=video.statistics.get("likeCount"),
                comment_count=video.statistics.get("commentCount"),
                channel_subscriber_count=channel.statistics.get("subscriberCount") if channel else None,
            ),
            topics=video.topic_details.get("topicCategories") or [],
            tags=video.snippet.tags,
            category=video.snippet.category_id,
            language=video.snippet.default_language or video.snippet.default_audio_language,
        )

    async def get_playlist_items(
        self,
        playlist_id: str,
        page_token: str | None = None,
    ) -> PlaylistPage:
        """Fetch one page of a playlist, joined with video statistics."""
        if not playlist_id:
            raise InvalidArgument("Playlist ID is required")

        params = {
            "part": "snippet,contentDetails",
            "playlistId": playlist_id,
            "maxResults": "10",
        }
        if page_token:
            params["pageToken"] = page_token

        page = await self._fetch_list("playlistItems", params, PlaylistEntry)
        if not page.items:
            return PlaylistPage()

        statistics = await self._video_statistics(
            [entry.content_details.video_id for entry in page.items]
        )
        return PlaylistPage(
            items=[
                VideoSummary(
                    id=entry.content_details.video_id,
                    title=entry.snippet.title,
                    description=entry.snippet.description,
                    thumbnail=entry.snippet.thumbnail_url("medium"),
                    published_at=entry.snippet.published_at,
                    statistics=statistics.get(entry.content_details.video_id, {}),
                )
                for entry in page.items
            ],
            next_page_token=page.next_page_token,
        )

    async def _video_statistics(self, video_ids: list[str]) -> dict[str, dict[str, Any]]:
        if not video_ids:
            return {}
        videos = await self._fetch_optional(
            "videos",
            {"part": "snippet,statistics", "id": ",".join(video_ids)},
            VideoItem,
        )
        return {video.id: video.statistics for video in videos.items}


def _banner_url(channel: ChannelItem) -> str | None:
    image = channel.branding_settings.get("image") or {}
    return image.get("bannerExternalUrl")


# Singleton instance
_youtube_service: YouTubeService | None = None


def get_youtube_service() -> YouTubeService:
    """Get the YouTube service singleton.

    Returns:
        YouTubeService instance backed by the configured database cache.
    """
    global _youtube_service
    if _youtube_service is None:
        settings = get_settings()
        cache = ResponseCache(
            persistent=SqlStore(get_db()),
            ttl_seconds=settings.youtube.cache_ttl_seconds,
        )
        _youtube_service = YouTubeService(
            api_key=settings.youtube.api_key,
            cache=cache,
            base_url=settings.youtube.base_url,
            timeout=settings.youtube.request_timeout,
        )
    return _youtube_service
