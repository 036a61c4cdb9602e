"""Service wiring shared by all routes."""

from dataclasses import dataclass

from fastapi import Request

from ...cache import ResponseCache, SqlStore
from ...config import Settings, get_settings
from ...db.connection import DatabaseConnection
from ...jobrunner import JobRunnerClient
from ...services.content_service import ContentService
from ...services.llm_service import LLMService
from ...services.source_service import SourceService
from ...services.usage_service import UsageLedger, UsagePolicy
from ...services.youtube_service import YouTubeService
from ...workers.transcribe.worker import TranscribeWorker


@dataclass
class ServiceContainer:
    """Every long-lived service the API uses, built once per app."""

    db: DatabaseConnection
    youtube: YouTubeService
    job_runner: JobRunnerClient
    transcriber: TranscribeWorker
    llm: LLMService
    ledger: UsageLedger
    sources: SourceService
    content: ContentService

    async def close(self) -> None:
        """Close HTTP clients and database connections."""
        await self.youtube.close()
        await self.job_runner.close()
        await self.db.close()


def build_container(settings: Settings | None = None) -> ServiceContainer:
    """Wire services from settings.

    Args:
        settings: Settings to use; the cached settings if omitted.

    Returns:
        A ServiceContainer sharing one database connection.
    """
    settings = settings or get_settings()

    db = DatabaseConnection(
        url=settings.database.url,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        echo=settings.database.echo,
    )
    youtube = YouTubeService(
        api_key=settings.youtube.api_key,
        cache=ResponseCache(
            persistent=SqlStore(db),
            ttl_seconds=settings.youtube.cache_ttl_seconds,
        ),
        base_url=settings.youtube.base_url,
        timeout=settings.youtube.request_timeout,
    )
    job_runner = JobRunnerClient(
        token=settings.apify.token,
        actor_id=settings.apify.actor_id,
        base_url=settings.apify.base_url,
        timeout=settings.apify.request_timeout,
    )
    llm = LLMService()
    transcriber = TranscribeWorker(
        db=db,
        job_runner=job_runner,
        llm=llm,
        poll_interval_seconds=settings.apify.poll_interval_seconds,
        max_poll_attempts=settings.apify.max_poll_attempts,
    )
    ledger = UsageLedger(
        db=db,
        policy=UsagePolicy(settings.usage.policy),
        default_plan_name=settings.usage.default_plan_name,
        default_allowance=settings.usage.default_allowance,
    )
    sources = SourceService(db)
    content = ContentService(
        db=db,
        sources=sources,
        youtube=youtube,
        transcriber=transcriber,
        llm=llm,
        ledger=ledger,
    )
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


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the app's service container."""
    return request.app.state.container
