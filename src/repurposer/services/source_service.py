"""Content sources and their processing history."""

from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.connection import DatabaseConnection, get_db, session_scope
from ..db.models import (
    SOURCE_STATUSES,
    SOURCE_TYPES,
    ContentExtraction,
    ContentSource,
    GeneratedContent,
    ProcessingHistoryEntry,
    Transcription,
)
from ..errors import InvalidArgument, NotFound
from ..logging.config import get_logger

logger = get_logger(__name__)


async def add_history_entry(
    session: AsyncSession,
    source_id: UUID,
    action: str,
    status: str,
    details: str,
    metadata: dict[str, Any] | None = None,
) -> ProcessingHistoryEntry:
    """Append a history entry to the session."""
    entry = ProcessingHistoryEntry(
        source_id=source_id,
        action=action,
        status=status,
        details=details,
        history_metadata=metadata or {},
    )
    session.add(entry)
    await session.flush()
    return entry


class SourceService:
    """CRUD for content sources plus the append-only audit log."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    async def create_source(
        self,
        user_id: str,
        source_type: str = "youtube",
        metadata: dict[str, Any] | None = None,
        url: str | None = None,
    ) -> ContentSource:
        """Create a pending source and log its import."""
        if not user_id:
            raise InvalidArgument("User ID is required")
        if source_type not in SOURCE_TYPES:
            raise InvalidArgument(f"Invalid source type: {source_type}")

        source = ContentSource(
            user_id=user_id,
            source_type=source_type,
            url=url,
            status="pending",
            source_metadata=metadata or {},
        )
        async with self.db.session() as session:
            session.add(source)
            await session.flush()
            await add_history_entry(
                session,
                source.source_id,
                action="import",
                status="success",
                details=f"Added {source_type} source",
                metadata={"url": url} if url else None,
            )

        logger.info("Created source", source_id=str(source.source_id), user_id=user_id)
        return source

    async def list_sources(self, user_id: str) -> list[ContentSource]:
        """List a user's sources, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(ContentSource)
                .where(ContentSource.user_id == user_id)
                .order_by(ContentSource.created_at.desc())
            )
            return list(result.scalars().all())

    async def get_source(
        self,
        source_id: UUID,
        user_id: str | None = None,
        session: AsyncSession | None = None,
    ) -> ContentSource:
        """Fetch a source, optionally checking it belongs to ``user_id``.

        Raises:
            NotFound: The source does not exist or belongs to someone else.
        """
        async with session_scope(self.db, session) as s:
            source = await s.get(ContentSource, source_id)
        if source is None or (user_id is not None and source.user_id != user_id):
            raise NotFound("Source not found")
        return source

    async def update_status(
        self,
        source_id: UUID,
        status: str,
        user_id: str | None = None,
    ) -> ContentSource:
        """Move a source to a new status.

        Raises:
            InvalidArgument: The status is not recognised.
            NotFound: The source does not exist or belongs to someone else.
        """
        if status not in SOURCE_STATUSES:
            raise InvalidArgument(f"Invalid status: {status}")

        async with self.db.session() as session:
            source = await self.get_source(source_id, user_id, session)
            previous = source.status
            source.status = status
            await add_history_entry(
                session,
                source_id,
                action="status_update",
                status="success",
                details=f"Status changed from {previous} to {status}",
                metadata={"previous": previous, "status": status},
            )

        logger.info("Updated source status", source_id=str(source_id), status=status)
        return source

    async def update_metadata(
        self,
        source_id: UUID,
        metadata: dict[str, Any],
        status: str | None = None,
        session: AsyncSession | None = None,
    ) -> ContentSource:
        """Merge ``metadata`` into the source's metadata."""
        async with session_scope(self.db, session) as s:
            source = await self.get_source(source_id, session=s)
            # JSON columns only track reassignment
            source.source_metadata = {**source.source_metadata, **metadata}
            if status is not None:
                source.status = status
        return source

    async def link_video(
        self,
        source_id: UUID,
        video_id: str,
        session: AsyncSession | None = None,
    ) -> ContentSource:
        """Record the video whose transcript the source generates from."""
        async with session_scope(self.db, session) as s:
            source = await self.get_source(source_id, session=s)
            source.video_id = video_id
        return source

    async def delete_source(self, source_id: UUID, user_id: str | None = None) -> None:
        """Delete a source with its extractions, content and history.

        Transcripts are shared by every source linked to the same video. A
        transcript stored against this source is handed to another linked
        source when there is one and deleted otherwise.
        """
        async with self.db.session() as session:
            await self.get_source(source_id, user_id, session)

            result = await session.execute(
                select(Transcription).where(Transcription.source_id == source_id)
            )
            for transcript in result.scalars().all():
                heir = await session.execute(
                    select(ContentSource.source_id)
                    .where(
                        ContentSource.video_id == transcript.video_id,
                        ContentSource.source_id != source_id,
                    )
                    .order_by(ContentSource.created_at)
                    .limit(1)
                )
                heir_id = heir.scalar_one_or_none()
                if heir_id is None:
                    await session.delete(transcript)
                else:
                    transcript.source_id = heir_id
                    logger.info(
                        "Reassigned shared transcript",
                        video_id=transcript.video_id,
                        source_id=str(heir_id),
                    )
            await session.flush()

            for model in (ContentExtraction, GeneratedContent, ProcessingHistoryEntry):
                await session.execute(delete(model).where(model.source_id == source_id))
            await session.execute(delete(ContentSource).where(ContentSource.source_id == source_id))

        logger.info("Deleted source", source_id=str(source_id))

    async def record_history(
        self,
        source_id: UUID,
        action: str,
        status: str,
        details: str,
        metadata: dict[str, Any] | None = None,
        session: AsyncSession | None = None,
    ) -> ProcessingHistoryEntry:
        """Append an audit entry for a source."""
        async with session_scope(self.db, session) as s:
            return await add_history_entry(s, source_id, action, status, details, metadata)

    async def list_history(self, source_id: UUID) -> list[ProcessingHistoryEntry]:
        """List a source's history, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(ProcessingHistoryEntry)
                .where(ProcessingHistoryEntry.source_id == source_id)
                .order_by(ProcessingHistoryEntry.created_at.desc())
            )
            return list(result.scalars().all())


# Singleton instance
_source_service: SourceService | None = None


def get_source_service() -> SourceService:
    """Get the source service singleton."""
    global _source_service
    if _source_service is None:
        _source_service = SourceService(get_db())
    return _source_service
