"""Content extraction and generation.

``ContentService`` turns a source's transcript into blog, social and
newsletter content, meters the cost against the owner's allowance and keeps
the processing history up to date.
"""

import asyncio
import dataclasses
import math
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import select

from ..db.connection import DatabaseConnection
from ..db.models import ContentExtraction, ContentSource, GeneratedContent, Transcription, utcnow
from ..errors import (
    GenerationFailed,
    InvalidArgument,
    NotFound,
    RepurposerError,
    TokenAllowanceExceeded,
    UpstreamError,
)
from ..logging.config import get_logger, log_context
from ..workers.transcribe.worker import TranscribeWorker, TranscriptionOutcome, TranscriptionState
from .content_formats import FORMATS, cap_newsletter, estimate_tokens, parse_social_posts
from .llm_service import LLMService
from .source_service import SourceService, add_history_entry
from .usage_service import UsageLedger
from .youtube_service import YouTubeService

logger = get_logger(__name__)

CONTENT_TYPES = ("video", "playlist")

# Extraction is charged per started minute of video
TOKENS_PER_MINUTE = 10

EXTRACTION_FAILED_MESSAGE = "Failed to extract content. Please try again."


@dataclass
class GenerationResult:
    """Outputs of one generation batch."""

    content_id: UUID
    source_id: UUID
    formats: list[str]
    content: dict[str, Any]
    tokens_used: int
    structured_transcript: str | None = None
    cached: bool = False


def extraction_tokens(duration_seconds: int) -> int:
    return math.ceil(duration_seconds / 60) * TOKENS_PER_MINUTE


class ContentService:
    """Orchestrates extraction, transcription, generation and metering."""

    def __init__(
        self,
        db: DatabaseConnection,
        sources: SourceService,
        youtube: YouTubeService,
        transcriber: TranscribeWorker,
        llm: LLMService,
        ledger: UsageLedger,
    ):
        self.db = db
        self.sources = sources
        self.youtube = youtube
        self.transcriber = transcriber
        self.llm = llm
        self.ledger = ledger
        self._generation_cache: dict[tuple[str, tuple[str, ...]], GenerationResult] = {}
        self._extraction_cache: dict[tuple[str, str], ContentExtraction] = {}

    def clear_cache(self) -> None:
        """Forget cached generation and extraction results."""
        self._generation_cache.clear()
        self._extraction_cache.clear()

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    async def extract_content(
        self,
        source_id: UUID,
        content_type: str,
        content_id: str,
    ) -> ContentExtraction:
        """Extract a video's or playlist's metadata into a source.

        For a video the transcript is acquired too. A video without a
        transcript is not an error: the source is marked ``error`` and the
        extraction is returned with no transcript and no charge.

        Args:
            source_id: Source the content belongs to.
            content_type: ``video`` or ``playlist``.
            content_id: YouTube video or playlist ID.

        Returns:
            The saved extraction.

        Raises:
            InvalidArgument: An ID is missing or the content type is unknown.
            NotFound: The source or video does not exist.
            QuotaExceeded: The YouTube quota is exhausted with nothing cached.
            UpstreamError: Any other gateway failure.
        """
        if not source_id or not content_id:
            raise InvalidArgument("Source ID and content ID are required")
        if content_type not in CONTENT_TYPES:
            raise InvalidArgument(f"Invalid content type: {content_type}")

        cache_key = (str(source_id), content_id)
        cached = self._extraction_cache.get(cache_key)
        if cached is not None:
            return cached

        source = await self.sources.get_source(source_id)

        with log_context(source_id=str(source_id), content_id=content_id):
            try:
                if content_type == "video":
                    extraction = await self._extract_video(source, content_id)
                else:
                    extraction = await self._extract_playlist(source, content_id)
            except RepurposerError as e:
                logger.warning("Content extraction failed", error=e.message)
                await self.sources.record_history(
                    source_id,
                    action="analysis",
                    status="error",
                    details="Failed to extract content",
                    metadata={"error": str(e)},
                )
                if type(e) is UpstreamError:
                    raise UpstreamError(EXTRACTION_FAILED_MESSAGE) from e
                raise

        if content_type == "playlist" or extraction.transcript is not None:
            self._extraction_cache[cache_key] = extraction
        return extraction

    async def _extract_video(self, source: ContentSource, video_id: str) -> ContentExtraction:
        details = await self.youtube.get_video_details(video_id)
        transcript = await self.transcriber.get_transcript(video_id, source.source_id)
        metadata = details.model_dump()
        transcript_json = transcript.as_dict() if transcript is not None else None
        history_metadata = {"contentType": "video", "contentId": video_id}

        async with self.db.session() as session:
            if transcript is not None:
                tokens = extraction_tokens(details.duration_seconds)
                await self.ledger.charge(
                    source.user_id, source.source_id, tokens, "extraction", session=session
                )
                await add_history_entry(
                    session,
                    source.source_id,
                    action="analysis",
                    status="success",
                    details="Analyzed video content and metadata",
                    metadata={**history_metadata, "tokensUsed": tokens},
                )
                await self.sources.update_metadata(
                    source.source_id,
                    {**metadata, "transcript": transcript_json},
                    status="completed",
                    session=session,
                )
                await self.sources.link_video(source.source_id, video_id, session=session)
            else:
                logger.warning("No transcript available for video")
                await add_history_entry(
                    session,
                    source.source_id,
                    action="analysis",
                    status="error",
                    details="No transcript available for this video",
                    metadata=history_metadata,
                )
                await self.sources.update_metadata(
                    source.source_id, metadata, status="error", session=session
                )

            extraction = ContentExtraction(
                source_id=source.source_id,
                content_type="video",
                content_id=video_id,
                extraction_metadata=metadata,
                transcript=transcript_json,
            )
            session.add(extraction)

        logger.info("Extracted video", has_transcript=transcript is not None)
        return extraction

    async def _extract_playlist(self, source: ContentSource, playlist_id: str) -> ContentExtraction:
        page = await self.youtube.get_playlist_items(playlist_id)
        metadata = page.model_dump()

        async with self.db.session() as session:
            await add_history_entry(
                session,
                source.source_id,
                action="analysis",
                status="success",
                details="Analyzed playlist content and metadata",
                metadata={"contentType": "playlist", "contentId": playlist_id},
            )
            extraction = ContentExtraction(
                source_id=source.source_id,
                content_type="playlist",
                content_id=playlist_id,
                extraction_metadata=metadata,
                transcript=None,
            )
            session.add(extraction)

        logger.info("Extracted playlist", videos=len(page.items))
        return extraction

    async def acquire_transcript(
        self,
        source_id: UUID,
        video_id: str,
        cancel_event: asyncio.Event | None = None,
    ) -> TranscriptionOutcome:
        """Acquire a video's transcript and link the video to the source.

        The transcript may already be stored for another source of the same
        video; linking makes it the one this source generates from.
        """
        if not video_id:
            raise InvalidArgument("Video ID is required")
        outcome = await self.transcriber.acquire(video_id, source_id, cancel_event)
        if outcome.state is TranscriptionState.SUCCEEDED:
            await self.sources.link_video(source_id, video_id)
        return outcome

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(
        self,
        source_id: UUID,
        formats: list[str],
        options: dict[str, Any] | None = None,
    ) -> GenerationResult:
        """Generate content in each requested format from a source's transcript.

        Results are cached per source and format set for the life of the
        service; a cached result is returned without any AI call or charge.

        Args:
            source_id: Source whose transcript is used.
            formats: Any of ``blog``, ``social`` and ``newsletter``.
            options: Per-format options, keyed by format name.

        Returns:
            The generated content and its token cost.

        Raises:
            InvalidArgument: No source ID, no formats, or an unknown format.
            NotFound: The source or its transcript does not exist.
            GenerationFailed: An AI call or output parse failed.
            TokenAllowanceExceeded: The enforce policy rejected the charge.
        """
        if not source_id or not formats:
            raise InvalidArgument("Source ID and formats are required")
        unknown = sorted(set(formats) - set(FORMATS))
        if unknown:
            raise InvalidArgument(f"Unknown formats: {', '.join(unknown)}")
        options = options or {}

        requested = tuple(sorted(set(formats)))
        cache_key = (str(source_id), requested)
        cached = self._generation_cache.get(cache_key)
        if cached is not None:
            logger.debug("Generation cache hit", source_id=str(source_id))
            return dataclasses.replace(cached, cached=True)

        source = await self.sources.get_source(source_id)
        transcript = await self._find_transcript(source)
        if transcript is None:
            raise NotFound("No transcript available for this source")

        with log_context(source_id=str(source_id), formats=list(requested)):
            await self.sources.record_history(
                source_id,
                action="generation",
                status="success",
                details=f"Started generating content for formats: {', '.join(requested)}",
                metadata={"formats": list(requested), "options": options},
            )

            try:
                outputs = {}
                for fmt in requested:
                    outputs[fmt] = await self._generate_format(
                        fmt, source, transcript, options.get(fmt)
                    )
            except Exception as e:
                logger.exception("Content generation failed")
                await self.sources.record_history(
                    source_id,
                    action="generation",
                    status="error",
                    details="Failed to generate content",
                    metadata={"error": str(e)},
                )
                raise GenerationFailed() from e

            tokens = estimate_tokens(outputs)
            try:
                async with self.db.session() as session:
                    record = GeneratedContent(
                        source_id=source_id,
                        formats=",".join(requested),
                        content=outputs,
                        generation_metadata={
                            "formats": list(requested),
                            "options": options,
                            "tokensUsed": tokens,
                            "generatedAt": utcnow().isoformat(),
                        },
                    )
                    session.add(record)
                    await session.flush()
                    await self.ledger.charge(
                        source.user_id, source_id, tokens, "generation", session=session
                    )
                    await add_history_entry(
                        session,
                        source_id,
                        action="generation",
                        status="success",
                        details=f"Successfully generated content for formats: {', '.join(requested)}",
                        metadata={
                            "formats": list(requested),
                            "contentId": str(record.content_id),
                            "tokensUsed": tokens,
                        },
                    )
            except TokenAllowanceExceeded as e:
                await self.sources.record_history(
                    source_id,
                    action="generation",
                    status="error",
                    details="Token allowance exceeded",
                    metadata={"error": e.message, "tokensUsed": tokens},
                )
                raise

            logger.info("Generated content", content_id=str(record.content_id), tokens_used=tokens)

        result = GenerationResult(
            content_id=record.content_id,
            source_id=source_id,
            formats=list(requested),
            content=outputs,
            tokens_used=tokens,
            structured_transcript=transcript.structured_html,
        )
        self._generation_cache[cache_key] = result
        return result

    async def _generate_format(
        self,
        fmt: str,
        source: ContentSource,
        transcript: Transcription,
        options: dict[str, Any] | None,
    ) -> Any:
        if fmt == "blog":
            return await self.llm.generate_blog(transcript.raw_text, options)
        if fmt == "social":
            return parse_social_posts(await self.llm.generate_social_posts(transcript.raw_text))
        if fmt == "newsletter":
            context = {"source_type": source.source_type, "metadata": source.source_metadata}
            return cap_newsletter(await self.llm.generate_newsletter(transcript.raw_text, context))
        raise InvalidArgument(f"Unknown format: {fmt}")

    async def _find_transcript(self, source: ContentSource) -> Transcription | None:
        """The linked video's transcript, else the newest one stored against the source."""
        if source.video_id:
            query = select(Transcription).where(Transcription.video_id == source.video_id)
        else:
            query = (
                select(Transcription)
                .where(Transcription.source_id == source.source_id)
                .order_by(Transcription.created_at.desc())
                .limit(1)
            )
        async with self.db.session() as session:
            result = await session.execute(query)
            return result.scalar_one_or_none()

    async def get_latest_content(self, source_id: UUID) -> GeneratedContent | None:
        """Return the newest generated content for a source."""
        async with self.db.session() as session:
            result = await session.execute(
                select(GeneratedContent)
                .where(GeneratedContent.source_id == source_id)
                .order_by(GeneratedContent.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()
