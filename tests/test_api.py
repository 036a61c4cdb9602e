"""Tests for the HTTP API."""

from collections.abc import Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from repurposer.api.dependencies import ServiceContainer
from repurposer.api.main import create_app
from repurposer.cache import ResponseCache, SqlStore
from repurposer.db import DatabaseConnection
from repurposer.errors import QUOTA_EXCEEDED_MESSAGE
from repurposer.jobrunner import JobRunnerClient
from repurposer.services.content_service import ContentService
from repurposer.services.source_service import SourceService
from repurposer.services.usage_service import UsageLedger, UsagePolicy
from repurposer.services.youtube_service import YouTubeService
from repurposer.workers.transcribe.worker import TranscribeWorker

from .conftest import APIFY_BASE_URL, MEMORY_DB_URL, USER_ID, YOUTUBE_BASE_URL, make_llm_mock, video_payload

HEADERS = {"X-User-ID": USER_ID}


@pytest.fixture
def container(youtube_stub, apify_stub) -> ServiceContainer:
    """Services wired to in-memory storage and stubbed upstreams."""
    db = DatabaseConnection(url=MEMORY_DB_URL)
    youtube = YouTubeService(
        api_key="test-key",
        cache=ResponseCache(persistent=SqlStore(db)),
        base_url=YOUTUBE_BASE_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(youtube_stub.handler)),
    )
    job_runner = JobRunnerClient(
        token="apify-token",
        actor_id="actor-1",
        base_url=APIFY_BASE_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(apify_stub.handler)),
    )
    llm = make_llm_mock()
    transcriber = TranscribeWorker(db, job_runner, llm, poll_interval_seconds=0, max_poll_attempts=5)
    ledger = UsageLedger(db, policy=UsagePolicy.ADVISORY)
    sources = SourceService(db)
    content = ContentService(db, sources, youtube, transcriber, llm, ledger)
    return ServiceContainer(
        db=db,
        youtube=youtube,
        job_runner=job_runner,
        transcriber=transcriber,
        llm=llm,
        ledger=ledger,
        sources=sources,
        content=content,
    )


@pytest.fixture
def client(container) -> Generator[TestClient, None, None]:
    app = create_app(container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def source_id(client) -> str:
    response = client.post(
        "/api/v1/sources",
        json={"url": "https://www.youtube.com/@mychannel", "metadata": {"title": "My channel"}},
        headers=HEADERS,
    )
    assert response.status_code == 201
    return response.json()["source_id"]


class TestHealth:
    def test_healthy(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"api": True, "database": True}

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/v1/health", headers={"X-Correlation-ID": "corr-1"})
        assert response.headers["X-Correlation-ID"] == "corr-1"

    def test_correlation_id_is_generated(self, client):
        response = client.get("/api/v1/health")
        assert response.headers["X-Correlation-ID"]

    def test_malformed_correlation_id_is_replaced(self, client):
        response = client.get("/api/v1/health", headers={"X-Correlation-ID": "has spaces; and=more"})

        echoed = response.headers["X-Correlation-ID"]
        assert echoed != "has spaces; and=more"
        assert len(echoed) == 36


class TestAuth:
    def test_missing_user_header(self, client):
        response = client.get("/api/v1/sources")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "http_error"

    def test_youtube_routes_require_user(self, client):
        response = client.get("/api/v1/youtube/videos/vid123")
        assert response.status_code == 401


class TestSources:
    def test_create_and_get(self, client, source_id):
        response = client.get(f"/api/v1/sources/{source_id}", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["source_type"] == "youtube"
        assert body["metadata"] == {"title": "My channel"}

    def test_list(self, client, source_id):
        response = client.get("/api/v1/sources", headers=HEADERS)
        assert [s["source_id"] for s in response.json()] == [source_id]

        other = client.get("/api/v1/sources", headers={"X-User-ID": "someone-else"})
        assert other.json() == []

    def test_foreign_source_is_not_found(self, client, source_id):
        response = client.get(
            f"/api/v1/sources/{source_id}",
            headers={"X-User-ID": "someone-else", "X-Correlation-ID": "corr-2"},
        )

        assert response.status_code == 404
        assert response.json() == {
            "error": {"code": "not_found", "message": "Source not found", "correlation_id": "corr-2"}
        }
        assert response.headers["X-Correlation-ID"] == "corr-2"

    def test_invalid_source_type(self, client):
        response = client.post("/api/v1/sources", json={"source_type": "podcast"}, headers=HEADERS)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_update_status(self, client, source_id):
        response = client.patch(
            f"/api/v1/sources/{source_id}/status",
            json={"status": "processing"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "processing"

        history = client.get(f"/api/v1/sources/{source_id}/history", headers=HEADERS).json()
        assert [h["action"] for h in history] == ["status_update", "import"]
        assert history[0]["metadata"] == {"previous": "pending", "status": "processing"}

    def test_invalid_status(self, client, source_id):
        response = client.patch(
            f"/api/v1/sources/{source_id}/status",
            json={"status": "done"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_argument"

    def test_delete(self, client, source_id):
        response = client.delete(f"/api/v1/sources/{source_id}", headers=HEADERS)
        assert response.status_code == 204

        response = client.get(f"/api/v1/sources/{source_id}", headers=HEADERS)
        assert response.status_code == 404


class TestContentFlow:
    def test_transcript_then_generate(self, client, source_id, container):
        response = client.post(
            f"/api/v1/sources/{source_id}/transcript",
            json={"video_id": "vid999"},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json() == {
            "state": "succeeded",
            "run_id": "run-1",
            "error": None,
            "transcript": {"raw": "Hello and welcome to the show.", "html": "<h1>Structured</h1>"},
        }

        response = client.post(
            f"/api/v1/sources/{source_id}/generate",
            json={"formats": ["blog", "social"]},
            headers=HEADERS,
        )
        assert response.status_code == 200
        generated = response.json()
        assert generated["formats"] == ["blog", "social"]
        assert generated["content"]["blog"] == "A blog post about the video."
        assert generated["cached"] is False
        assert generated["tokens_used"] > 0

        latest = client.get(f"/api/v1/sources/{source_id}/content", headers=HEADERS)
        assert latest.status_code == 200
        assert latest.json()["content_id"] == generated["content_id"]
        assert latest.json()["metadata"]["tokensUsed"] == generated["tokens_used"]

        usage = client.get("/api/v1/usage", headers=HEADERS).json()
        assert usage["used"] == generated["tokens_used"]
        assert usage["remaining"] == usage["allowance"] - usage["used"]

    def test_sources_sharing_a_video_both_generate(self, client, source_id, apify_stub):
        other = client.post("/api/v1/sources", json={}, headers=HEADERS).json()["source_id"]

        for sid in (source_id, other):
            response = client.post(
                f"/api/v1/sources/{sid}/transcript",
                json={"video_id": "vid999"},
                headers=HEADERS,
            )
            assert response.json()["state"] == "succeeded"
        assert len(apify_stub.started) == 1
        assert client.get(f"/api/v1/sources/{other}", headers=HEADERS).json()["video_id"] == "vid999"

        for sid in (source_id, other):
            response = client.post(
                f"/api/v1/sources/{sid}/generate",
                json={"formats": ["blog"]},
                headers=HEADERS,
            )
            assert response.status_code == 200

    def test_failed_transcript_is_not_an_error_status(self, client, source_id, apify_stub):
        apify_stub.statuses = ["FAILED"]

        response = client.post(
            f"/api/v1/sources/{source_id}/transcript",
            json={"video_id": "vid999"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["state"] == "failed"
        assert response.json()["transcript"] is None

    def test_generate_without_transcript(self, client, source_id):
        response = client.post(
            f"/api/v1/sources/{source_id}/generate",
            json={"formats": ["blog"]},
            headers=HEADERS,
        )
        assert response.status_code == 404

    def test_generate_unknown_format(self, client, source_id):
        response = client.post(
            f"/api/v1/sources/{source_id}/generate",
            json={"formats": ["podcast"]},
            headers=HEADERS,
        )
        assert response.status_code == 400

    def test_no_content_yet(self, client, source_id):
        response = client.get(f"/api/v1/sources/{source_id}/content", headers=HEADERS)
        assert response.status_code == 404

    def test_extract_video(self, client, source_id, youtube_stub):
        youtube_stub.add("videos", video_payload("vid999"))

        response = client.post(
            f"/api/v1/sources/{source_id}/extract",
            json={"content_type": "video", "content_id": "vid999"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["metadata"]["title"] == "A video"
        assert body["transcript"]["raw"] == "Hello and welcome to the show."

        source = client.get(f"/api/v1/sources/{source_id}", headers=HEADERS).json()
        assert source["status"] == "completed"


class TestYouTube:
    def test_video_details(self, client, youtube_stub):
        youtube_stub.add("videos", video_payload())

        response = client.get("/api/v1/youtube/videos/vid123", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["duration_seconds"] == 121

    def test_quota_exceeded(self, client, youtube_stub):
        youtube_stub.quota_exceeded("videos")

        response = client.get("/api/v1/youtube/videos/vid123", headers=HEADERS)

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "quota_exceeded"
        assert response.json()["error"]["message"] == QUOTA_EXCEEDED_MESSAGE

    def test_upstream_failure(self, client, youtube_stub):
        youtube_stub.fail("videos")

        response = client.get("/api/v1/youtube/videos/vid123", headers=HEADERS)
        assert response.status_code == 502

    def test_empty_search_query(self, client):
        response = client.get("/api/v1/youtube/channels/search", params={"q": ""}, headers=HEADERS)
        assert response.status_code == 400


class TestUsage:
    def test_new_user_balance(self, client):
        response = client.get("/api/v1/usage", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {
            "user_id": USER_ID,
            "plan_name": "Free",
            "allowance": 10000,
            "used": 0,
            "remaining": 10000,
        }
