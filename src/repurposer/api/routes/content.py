"""Extraction, transcript and generation API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import ServiceContainer, get_container, require_user
from ..models.content import (
    ExtractionResponse,
    ExtractRequest,
    GeneratedContentResponse,
    GenerateRequest,
    GenerationResponse,
    TranscriptRequest,
    TranscriptResponse,
)

router = APIRouter(prefix="/api/v1/sources", tags=["Content"])


@router.post(
    "/{source_id}/extract",
    response_model=ExtractionResponse,
    summary="Extract Content",
    description="Extract a video's or playlist's metadata, and a video's transcript, into a source",
)
async def extract_content(
    source_id: UUID,
    body: ExtractRequest,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> ExtractionResponse:
    await container.sources.get_source(source_id, user_id)
    extraction = await container.content.extract_content(
        source_id, body.content_type, body.content_id
    )
    return ExtractionResponse.model_validate(extraction)


@router.post(
    "/{source_id}/transcript",
    response_model=TranscriptResponse,
    summary="Acquire Transcript",
)
async def acquire_transcript(
    source_id: UUID,
    body: TranscriptRequest,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> TranscriptResponse:
    """Fetch or scrape a video transcript.

    A video without a transcript is reported as a ``failed`` state rather
    than an error status.
    """
    await container.sources.get_source(source_id, user_id)
    outcome = await container.content.acquire_transcript(source_id, body.video_id)
    return TranscriptResponse(
        state=outcome.state.value,
        run_id=outcome.run_id,
        error=outcome.error,
        transcript=outcome.transcript.as_dict() if outcome.transcript else None,
    )


@router.post(
    "/{source_id}/generate",
    response_model=GenerationResponse,
    summary="Generate Content",
)
async def generate_content(
    source_id: UUID,
    body: GenerateRequest,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> GenerationResponse:
    await container.sources.get_source(source_id, user_id)
    result = await container.content.generate(source_id, body.formats, body.options)
    return GenerationResponse.model_validate(result)


@router.get(
    "/{source_id}/content",
    response_model=GeneratedContentResponse,
    summary="Latest Generated Content",
)
async def get_latest_content(
    source_id: UUID,
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> GeneratedContentResponse:
    await container.sources.get_source(source_id, user_id)
    content = await container.content.get_latest_content(source_id)
    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No content has been generated for this source",
        )
    return GeneratedContentResponse.model_validate(content)
