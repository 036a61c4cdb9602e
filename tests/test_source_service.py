"""Tests for content sources and processing history."""

import uuid

import pytest
from sqlalchemy import func, select

from repurposer.db import ContentExtraction, GeneratedContent, ProcessingHistoryEntry, Transcription
from repurposer.errors import InvalidArgument, NotFound

from .conftest import USER_ID


async def count_rows(db, model) -> int:
    async with db.session() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar()


class TestSources:
    async def test_create_is_pending(self, sources):
        source = await sources.create_source(USER_ID, "youtube", {"title": "T"}, "https://youtube.com/@t")

        assert source.status == "pending"
        assert source.source_metadata == {"title": "T"}

        history = await sources.list_history(source.source_id)
        assert [h.action for h in history] == ["import"]

    async def test_create_rejects_unknown_type(self, sources):
        with pytest.raises(InvalidArgument):
            await sources.create_source(USER_ID, "podcast")

    async def test_list_is_scoped_to_user(self, sources):
        mine = await sources.create_source(USER_ID)
        await sources.create_source("someone-else")

        listed = await sources.list_sources(USER_ID)
        assert [s.source_id for s in listed] == [mine.source_id]

    async def test_list_newest_first(self, sources):
        first = await sources.create_source(USER_ID)
        second = await sources.create_source(USER_ID)

        listed = await sources.list_sources(USER_ID)
        assert [s.source_id for s in listed] == [second.source_id, first.source_id]

    async def test_get_foreign_source(self, sources, source):
        with pytest.raises(NotFound):
            await sources.get_source(source.source_id, "someone-else")

    async def test_get_unknown_source(self, sources):
        with pytest.raises(NotFound):
            await sources.get_source(uuid.uuid4())


class TestStatus:
    async def test_update(self, sources, source):
        updated = await sources.update_status(source.source_id, "processing", USER_ID)

        assert updated.status == "processing"
        assert (await sources.get_source(source.source_id)).status == "processing"
        history = await sources.list_history(source.source_id)
        assert history[0].action == "status_update"
        assert history[0].history_metadata == {"previous": "pending", "status": "processing"}

    async def test_invalid_status(self, sources, source):
        with pytest.raises(InvalidArgument):
            await sources.update_status(source.source_id, "done")

    async def test_unknown_source(self, sources):
        with pytest.raises(NotFound):
            await sources.update_status(uuid.uuid4(), "completed")


class TestMetadata:
    async def test_merge(self, sources, source):
        await sources.update_metadata(source.source_id, {"duration_seconds": 60}, status="completed")

        updated = await sources.get_source(source.source_id)
        assert updated.source_metadata["title"] == "My channel"
        assert updated.source_metadata["duration_seconds"] == 60
        assert updated.status == "completed"

    async def test_link_video(self, sources, source):
        await sources.link_video(source.source_id, "vid123")

        assert (await sources.get_source(source.source_id)).video_id == "vid123"

    async def test_link_video_unknown_source(self, sources):
        with pytest.raises(NotFound):
            await sources.link_video(uuid.uuid4(), "vid123")


class TestDelete:
    async def test_removes_children(self, db, sources, source, transcript):
        async with db.session() as session:
            session.add(
                GeneratedContent(source_id=source.source_id, formats="blog", content={"blog": "x"})
            )
            session.add(
                ContentExtraction(source_id=source.source_id, content_type="video", content_id="vid123")
            )

        await sources.delete_source(source.source_id, USER_ID)

        with pytest.raises(NotFound):
            await sources.get_source(source.source_id)
        for model in (Transcription, GeneratedContent, ContentExtraction, ProcessingHistoryEntry):
            assert await count_rows(db, model) == 0

    async def test_foreign_source_is_kept(self, sources, source):
        with pytest.raises(NotFound):
            await sources.delete_source(source.source_id, "someone-else")
        assert await sources.get_source(source.source_id)

    async def test_shared_transcript_passes_to_linked_source(self, db, sources, source, transcript):
        other = await sources.create_source(USER_ID)
        await sources.link_video(source.source_id, "vid123")
        await sources.link_video(other.source_id, "vid123")

        await sources.delete_source(source.source_id, USER_ID)

        async with db.session() as session:
            kept = (await session.execute(select(Transcription))).scalars().all()
        assert [t.source_id for t in kept] == [other.source_id]
        assert kept[0].raw_text == transcript.raw_text

    async def test_unshared_transcript_is_deleted(self, db, sources, source, transcript):
        other = await sources.create_source(USER_ID)
        await sources.link_video(other.source_id, "vid777")

        await sources.delete_source(source.source_id, USER_ID)

        assert await count_rows(db, Transcription) == 0


class TestHistory:
    async def test_record_and_list(self, sources, source):
        await sources.record_history(source.source_id, "analysis", "success", "Analyzed", {"k": 1})

        history = await sources.list_history(source.source_id)
        assert history[0].action == "analysis"
        assert history[0].history_metadata == {"k": 1}
        assert len(history) == 2
