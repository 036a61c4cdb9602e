"""Transcribe worker for acquiring YouTube video transcripts.

A transcript is scraped by an Apify actor run. The worker submits the run,
polls it until it reaches a terminal status, reads the dataset, asks the LLM
for a structured HTML version and stores both forms.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_when_event_set,
    wait_fixed,
)

from ...config import get_settings
from ...db.connection import DatabaseConnection, get_db
from ...db.models import Transcription
from ...jobrunner import STATUS_SUCCEEDED, TERMINAL_STATUSES, JobRunnerClient, get_job_runner_client
from ...logging.config import get_logger, log_context
from ...services.llm_service import LLMService, get_llm_service

logger = get_logger(__name__)


class TranscriptionState(str, Enum):
    """Lifecycle of a transcript request."""

    NOT_REQUESTED = "not_requested"
    JOB_SUBMITTED = "job_submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class TranscriptionOutcome:
    """Result of acquiring a transcript."""

    state: TranscriptionState
    transcript: Transcription | None = None
    run_id: str | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, transcript: Transcription, run_id: str | None = None) -> "TranscriptionOutcome":
        """Create a success outcome."""
        return cls(state=TranscriptionState.SUCCEEDED, transcript=transcript, run_id=run_id)

    @classmethod
    def failed(cls, error: str, run_id: str | None = None) -> "TranscriptionOutcome":
        """Create a failed outcome."""
        return cls(state=TranscriptionState.FAILED, run_id=run_id, error=error)


class PollingStopped(Exception):
    """Polling ended before the run reached a terminal status."""


def _sleep_unless_set(event: asyncio.Event):
    """Build a tenacity sleep that returns early once ``event`` is set."""

    async def sleep(seconds: float) -> None:
        try:
            await asyncio.wait_for(event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return

    return sleep


class TranscribeWorker:
    """Acquires and persists transcripts, one job per video."""

    def __init__(
        self,
        db: DatabaseConnection,
        job_runner: JobRunnerClient,
        llm: LLMService,
        poll_interval_seconds: float = 1.0,
        max_poll_attempts: int = 600,
    ):
        """Initialize the worker.

        Args:
            db: Database holding the transcripts table.
            job_runner: Client used to start and poll actor runs.
            llm: Service that structures raw transcripts.
            poll_interval_seconds: Delay between status polls.
            max_poll_attempts: Polls before the run is given up on.
        """
        self.db = db
        self.job_runner = job_runner
        self.llm = llm
        self.poll_interval_seconds = poll_interval_seconds
        self.max_poll_attempts = max_poll_attempts
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, video_id: str) -> asyncio.Lock:
        lock = self._locks.get(video_id)
        if lock is None:
            lock = self._locks[video_id] = asyncio.Lock()
        return lock

    async def find_existing(self, video_id: str) -> Transcription | None:
        """Return the stored transcript for a video, if any."""
        async with self.db.session() as session:
            result = await session.execute(
                select(Transcription).where(Transcription.video_id == video_id)
            )
            return result.scalar_one_or_none()

    async def acquire(
        self,
        video_id: str,
        source_id: UUID,
        cancel_event: asyncio.Event | None = None,
    ) -> TranscriptionOutcome:
        """Get a video's transcript, running a scrape job only if none is stored.

        Never raises: any failure is logged and returned as a FAILED outcome.

        Args:
            video_id: YouTube video ID.
            source_id: Source the transcript is stored against.
            cancel_event: Set to stop polling early.

        Returns:
            The outcome, carrying the stored transcript on success.
        """
        with log_context(video_id=video_id, source_id=str(source_id)):
            async with self._lock_for(video_id):
                run_id = None
                try:
                    existing = await self.find_existing(video_id)
                    if existing is not None:
                        logger.info("Found existing transcript")
                        return TranscriptionOutcome.succeeded(existing)

                    if cancel_event is not None and cancel_event.is_set():
                        return TranscriptionOutcome.failed("Cancelled before submission")

                    run_id = await self.job_runner.start_run(video_id)
                    logger.info(
                        "Transcript job submitted",
                        run_id=run_id,
                        state=TranscriptionState.JOB_SUBMITTED.value,
                    )

                    status = await self._poll(run_id, cancel_event)
                    if status != STATUS_SUCCEEDED:
                        logger.warning("Transcript job did not succeed", run_id=run_id, status=status)
                        return TranscriptionOutcome.failed(f"Job ended with status {status}", run_id)

                    items = await self.job_runner.get_dataset_items(run_id)
                    raw_text = items[0].get("transcript") if items else None
                    if not raw_text:
                        logger.warning("Transcript job returned no transcript", run_id=run_id)
                        return TranscriptionOutcome.failed("No transcript available", run_id)

                    structured = await self.llm.structure_transcript(raw_text)
                    transcript = await self._store(video_id, source_id, raw_text, structured)

                    logger.info(
                        "Transcript stored",
                        run_id=run_id,
                        transcript_length=len(raw_text),
                    )
                    return TranscriptionOutcome.succeeded(transcript, run_id)

                except PollingStopped as e:
                    logger.warning("Transcript polling stopped", run_id=run_id, reason=str(e))
                    return TranscriptionOutcome.failed(str(e), run_id)
                except Exception as e:
                    logger.exception("Transcript acquisition failed", run_id=run_id)
                    return TranscriptionOutcome.failed(str(e), run_id)

    async def get_transcript(
        self,
        video_id: str,
        source_id: UUID,
        cancel_event: asyncio.Event | None = None,
    ) -> Transcription | None:
        """Like ``acquire`` but returns the transcript or None."""
        outcome = await self.acquire(video_id, source_id, cancel_event)
        return outcome.transcript

    async def _poll(self, run_id: str, cancel_event: asyncio.Event | None) -> str:
        """Poll a run until its status is terminal.

        Setting ``cancel_event`` ends the wait between polls immediately and
        no further poll is made.

        Raises:
            PollingStopped: Attempts ran out or polling was cancelled.
        """
        stop = stop_after_attempt(self.max_poll_attempts)
        sleep = asyncio.sleep
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)
            sleep = _sleep_unless_set(cancel_event)

        status = None
        try:
            async for attempt in AsyncRetrying(
                sleep=sleep,
                stop=stop,
                wait=wait_fixed(self.poll_interval_seconds),
                retry=retry_if_result(lambda s: s not in TERMINAL_STATUSES),
            ):
                if cancel_event is not None and cancel_event.is_set():
                    raise PollingStopped(f"Polling cancelled at status {status}")
                with attempt:
                    status = await self.job_runner.get_run_status(run_id)
                    logger.debug(
                        "Polled transcript job",
                        run_id=run_id,
                        status=status,
                        attempt=attempt.retry_state.attempt_number,
                        state=TranscriptionState.POLLING.value,
                    )
                if not attempt.retry_state.outcome.failed:
                    attempt.retry_state.set_result(status)
        except RetryError as e:
            if cancel_event is not None and cancel_event.is_set():
                raise PollingStopped(f"Polling cancelled at status {status}") from e
            raise PollingStopped(
                f"Run still {status} after {self.max_poll_attempts} polls"
            ) from e
        return status

    async def _store(
        self,
        video_id: str,
        source_id: UUID,
        raw_text: str,
        structured_html: str,
    ) -> Transcription:
        transcript = Transcription(
            source_id=source_id,
            video_id=video_id,
            raw_text=raw_text,
            structured_html=structured_html,
        )
        async with self.db.session() as session:
            session.add(transcript)
        return transcript


# Singleton instance
_transcribe_worker: TranscribeWorker | None = None


def get_transcribe_worker() -> TranscribeWorker:
    """Get the transcribe worker singleton."""
    global _transcribe_worker
    if _transcribe_worker is None:
        settings = get_settings()
        _transcribe_worker = TranscribeWorker(
            db=get_db(),
            job_runner=get_job_runner_client(),
            llm=get_llm_service(),
            poll_interval_seconds=settings.apify.poll_interval_seconds,
            max_poll_attempts=settings.apify.max_poll_attempts,
        )
    return _transcribe_worker
