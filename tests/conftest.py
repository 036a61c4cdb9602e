"""Pytest configuration and fixtures."""

import json
from collections.abc import AsyncGenerator, Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from repurposer.cache import ResponseCache, SqlStore
from repurposer.db import DatabaseConnection, Transcription
from repurposer.jobrunner import JobRunnerClient
from repurposer.services.content_service import ContentService
from repurposer.services.llm_service import LLMService
from repurposer.services.source_service import SourceService
from repurposer.services.usage_service import UsageLedger, UsagePolicy
from repurposer.services.youtube_service import YouTubeService
from repurposer.workers.transcribe.worker import TranscribeWorker

MEMORY_DB_URL = "sqlite+aiosqlite:///:memory:"
YOUTUBE_BASE_URL = "https://youtube.test/youtube/v3"
APIFY_BASE_URL = "https://apify.test/v2"
USER_ID = "user-1"

QUOTA_ERROR = {
    "error": {
        "code": 403,
        "message": "The request cannot be completed because you have exceeded your quota.",
        "errors": [{"reason": "quotaExceeded", "domain": "youtube.quota"}],
    }
}

SOCIAL_RESPONSE = json.dumps(
    [
        {"platform": "twitter", "content": "Short post #video"},
        {"platform": "linkedin", "content": "A longer professional post."},
    ]
)


# ============================================================================
# Test doubles
# ============================================================================


class FakeClock:
    """Settable clock for cache expiry tests."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class YouTubeStub:
    """Serves canned YouTube Data API responses keyed by endpoint."""

    def __init__(self) -> None:
        self.responses: dict[str, tuple[int, dict[str, Any] | str]] = {}
        self.calls: list[tuple[str, dict[str, str]]] = []

    def add(self, endpoint: str, payload: dict[str, Any] | str, status_code: int = 200) -> None:
        self.responses[endpoint] = (status_code, payload)

    def fail(self, endpoint: str, message: str = "Backend Error", status_code: int = 500) -> None:
        self.add(
            endpoint,
            {"error": {"code": status_code, "message": message, "errors": [{"reason": "backendError"}]}},
            status_code,
        )

    def quota_exceeded(self, endpoint: str) -> None:
        self.add(endpoint, QUOTA_ERROR, 403)

    def count(self, endpoint: str) -> int:
        return sum(1 for called, _ in self.calls if called == endpoint)

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        self.calls.append((endpoint, dict(request.url.params)))
        if endpoint not in self.responses:
            return httpx.Response(
                404,
                json={"error": {"code": 404, "message": "Not Found", "errors": [{"reason": "notFound"}]}},
            )
        status_code, payload = self.responses[endpoint]
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, json=payload)


class ApifyStub:
    """Simulates an actor run that walks through a list of statuses."""

    def __init__(
        self,
        statuses: list[str] | None = None,
        items: list[dict[str, Any]] | None = None,
        run_id: str = "run-1",
    ):
        self.statuses = statuses or ["RUNNING", "SUCCEEDED"]
        self.items = items if items is not None else [{"transcript": "Hello and welcome to the show."}]
        self.run_id = run_id
        self.started: list[dict[str, Any]] = []
        self.headers: list[httpx.Headers] = []
        self.status_polls = 0
        self.start_status_code = 201
        self.on_poll: Callable[[int], None] | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.headers.append(request.headers)

        if request.method == "POST" and path.endswith("/runs"):
            if self.start_status_code >= 400:
                return httpx.Response(self.start_status_code, json={"error": {"message": "boom"}})
            self.started.append(json.loads(request.content))
            return httpx.Response(self.start_status_code, json={"data": {"id": self.run_id}})

        if path.endswith("/dataset/items"):
            return httpx.Response(200, json=self.items)

        if "/actor-runs/" in path:
            self.status_polls += 1
            if self.on_poll is not None:
                self.on_poll(self.status_polls)
            status = self.statuses[min(self.status_polls, len(self.statuses)) - 1]
            return httpx.Response(200, json={"data": {"id": self.run_id, "status": status}})

        return httpx.Response(404, json={})


def make_llm_mock() -> MagicMock:
    """LLM service double with canned outputs for every prompt."""
    llm = MagicMock(spec=LLMService)
    llm.generate_blog = AsyncMock(return_value="A blog post about the video.")
    llm.generate_social_posts = AsyncMock(return_value=SOCIAL_RESPONSE)
    llm.generate_newsletter = AsyncMock(return_value="Subject: This week\n\nHighlights.")
    llm.structure_transcript = AsyncMock(return_value="<h1>Structured</h1>")
    return llm


def video_payload(video_id: str = "vid123", duration: str = "PT2M1S") -> dict[str, Any]:
    return {
        "items": [
            {
                "id": video_id,
                "snippet": {
                    "title": "A video",
                    "description": "About things",
                    "publishedAt": "2024-01-01T00:00:00Z",
                    "channelId": "chan1",
                    "channelTitle": "A channel",
                    "thumbnails": {"high": {"url": "https://img.test/high.jpg"}},
                    "tags": ["one", "two"],
                    "categoryId": "22",
                    "defaultAudioLanguage": "en",
                },
                "statistics": {"viewCount": "10", "likeCount": "2", "commentCount": "1"},
                "contentDetails": {"duration": duration},
                "topicDetails": {"topicCategories": ["https://en.wikipedia.org/wiki/Music"]},
            }
        ]
    }


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db() -> AsyncGenerator[DatabaseConnection, None]:
    """In-memory SQLite database with all tables created."""
    database = DatabaseConnection(url=MEMORY_DB_URL)
    await database.create_tables()
    yield database
    await database.close()


# ============================================================================
# Upstream Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def youtube_stub() -> YouTubeStub:
    return YouTubeStub()


@pytest.fixture
def response_cache(db, clock) -> ResponseCache:
    return ResponseCache(persistent=SqlStore(db), ttl_seconds=1800, clock=clock)


@pytest.fixture
async def youtube(youtube_stub, response_cache) -> AsyncGenerator[YouTubeService, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(youtube_stub.handler))
    service = YouTubeService(
        api_key="test-key",
        cache=response_cache,
        base_url=YOUTUBE_BASE_URL,
        http_client=client,
    )
    yield service
    await service.close()


@pytest.fixture
def apify_stub() -> ApifyStub:
    return ApifyStub()


@pytest.fixture
async def job_runner(apify_stub) -> AsyncGenerator[JobRunnerClient, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(apify_stub.handler))
    runner = JobRunnerClient(
        token="apify-token",
        actor_id="actor-1",
        base_url=APIFY_BASE_URL,
        http_client=client,
    )
    yield runner
    await runner.close()


@pytest.fixture
def llm() -> MagicMock:
    return make_llm_mock()


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def worker(db, job_runner, llm) -> TranscribeWorker:
    return TranscribeWorker(
        db=db,
        job_runner=job_runner,
        llm=llm,
        poll_interval_seconds=0,
        max_poll_attempts=5,
    )


@pytest.fixture
def ledger(db) -> UsageLedger:
    return UsageLedger(db=db, policy=UsagePolicy.ADVISORY)


@pytest.fixture
def sources(db) -> SourceService:
    return SourceService(db)


@pytest.fixture
def content_service(db, sources, youtube, worker, llm, ledger) -> ContentService:
    return ContentService(
        db=db,
        sources=sources,
        youtube=youtube,
        transcriber=worker,
        llm=llm,
        ledger=ledger,
    )


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
async def source(sources):
    """A pending YouTube source owned by USER_ID."""
    return await sources.create_source(
        USER_ID,
        "youtube",
        metadata={"title": "My channel", "channel_title": "My channel"},
        url="https://www.youtube.com/@mychannel",
    )


@pytest.fixture
async def transcript(db, source) -> Transcription:
    """A stored transcript for ``source``."""
    record = Transcription(
        source_id=source.source_id,
        video_id="vid123",
        raw_text="Today we talk about repurposing content.",
        structured_html="<h1>Repurposing</h1>",
    )
    async with db.session() as session:
        session.add(record)
    return record
