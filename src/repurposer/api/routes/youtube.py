"""YouTube lookup API routes."""

from fastapi import APIRouter, Depends, Query

from ...models.youtube import ChannelDetails, ChannelSearchResult, PlaylistPage, VideoDetails
from ..dependencies import ServiceContainer, get_container, require_user

router = APIRouter(
    prefix="/api/v1/youtube",
    tags=["YouTube"],
    dependencies=[Depends(require_user)],
)


@router.get(
    "/channels/search",
    response_model=list[ChannelSearchResult],
    summary="Search Channels",
)
async def search_channels(
    q: str = Query(default="", description="Channel name to search for"),
    container: ServiceContainer = Depends(get_container),
) -> list[ChannelSearchResult]:
    return await container.youtube.search_channels(q)


@router.get("/channels/{channel_id}", response_model=ChannelDetails, summary="Channel Details")
async def get_channel(
    channel_id: str,
    container: ServiceContainer = Depends(get_container),
) -> ChannelDetails:
    """Channel profile with playlists and recent uploads."""
    return await container.youtube.get_channel_details(channel_id)


@router.get("/videos/{video_id}", response_model=VideoDetails, summary="Video Details")
async def get_video(
    video_id: str,
    container: ServiceContainer = Depends(get_container),
) -> VideoDetails:
    return await container.youtube.get_video_details(video_id)


@router.get(
    "/playlists/{playlist_id}/items",
    response_model=PlaylistPage,
    summary="Playlist Items",
)
async def get_playlist_items(
    playlist_id: str,
    page_token: str | None = Query(default=None, description="Page token from a previous call"),
    container: ServiceContainer = Depends(get_container),
) -> PlaylistPage:
    return await container.youtube.get_playlist_items(playlist_id, page_token)
