"""Content source API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import ServiceContainer, get_container, require_user
from ..models.source import (
    CreateSourceRequest,
    HistoryEntryResponse,
    SourceResponse,
    UpdateStatusRequest,
)

router = APIRouter(prefix="/api/v1/sources", tags=["Sources"])


@router.post(
    "",
    response_model=SourceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add Source",
)
async def create_source(
    body: CreateSourceRequest,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> SourceResponse:
    source = await container.sources.create_source(
        user_id=user_id,
        source_type=body.source_type,
        metadata=body.metadata,
        url=body.url,
    )
    return SourceResponse.model_validate(source)


@router.get("", response_model=list[SourceResponse], summary="List Sources")
async def list_sources(
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> list[SourceResponse]:
    """List the caller's sources, newest first."""
    sources = await container.sources.list_sources(user_id)
    return [SourceResponse.model_validate(s) for s in sources]


@router.get("/{source_id}", response_model=SourceResponse, summary="Get Source")
async def get_source(
    source_id: UUID,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> SourceResponse:
    source = await container.sources.get_source(source_id, user_id)
    return SourceResponse.model_validate(source)


@router.patch("/{source_id}/status", response_model=SourceResponse, summary="Update Status")
async def update_status(
    source_id: UUID,
    body: UpdateStatusRequest,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> SourceResponse:
    source = await container.sources.update_status(source_id, body.status, user_id)
    return SourceResponse.model_validate(source)


@router.delete(
    "/{source_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove Source",
)
async def delete_source(
    source_id: UUID,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> Response:
    """Remove a source together with everything derived from it."""
    await container.sources.delete_source(source_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{source_id}/history",
    response_model=list[HistoryEntryResponse],
    summary="Processing History",
)
async def list_history(
    source_id: UUID,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> list[HistoryEntryResponse]:
    await container.sources.get_source(source_id, user_id)
    entries = await container.sources.list_history(source_id)
    return [HistoryEntryResponse.model_validate(e) for e in entries]
