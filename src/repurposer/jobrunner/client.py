"""Apify REST client for starting actor runs and reading their results."""

from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import get_settings
from ..errors import UpstreamError
from ..logging.config import get_logger

logger = get_logger(__name__)

STATUS_SUCCEEDED = "SUCCEEDED"
FAILURE_STATUSES = frozenset({"FAILED", "TIMED-OUT", "ABORTED"})
TERMINAL_STATUSES = FAILURE_STATUSES | {STATUS_SUCCEEDED}


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


class JobRunnerClient:
    """Thin async client over the Apify v2 API."""

    def __init__(
        self,
        token: str,
        actor_id: str,
        base_url: str = "https://api.apify.com/v2",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the client.

        Args:
            token: Apify API token, sent as a bearer token.
            actor_id: Actor that scrapes a transcript from a video URL.
            base_url: API root, overridable for tests.
            http_client: Pre-built client; one is created if omitted.
            timeout: Request timeout used when creating the client.
        """
        self.actor_id = actor_id
        self.base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"}
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(
            method,
            f"{self.base_url}/{path}",
            headers=self._headers,
            **kwargs,
        )
        if response.is_error:
            logger.error(
                "Apify request failed",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise UpstreamError(f"Job runner request failed with status {response.status_code}")
        return response.json()

    async def start_run(self, video_id: str) -> str:
        """Start a transcript run for a video.

        Returns:
            The run id.
        """
        body = await self._request(
            "POST",
            f"acts/{self.actor_id}/runs",
            json={"startUrls": [watch_url(video_id)]},
        )
        try:
            return body["data"]["id"]
        except (KeyError, TypeError) as e:
            raise UpstreamError("Job runner returned no run id") from e

    async def get_run_status(self, run_id: str) -> str:
        body = await self._request("GET", f"actor-runs/{run_id}")
        try:
            return body["data"]["status"]
        except (KeyError, TypeError) as e:
            raise UpstreamError("Job runner returned no run status") from e

    async def get_dataset_items(self, run_id: str) -> list[dict[str, Any]]:
        """Fetch the items a finished run produced."""
        body = await self._request("GET", f"actor-runs/{run_id}/dataset/items")
        if not isinstance(body, list):
            raise UpstreamError("Job runner returned an unexpected dataset")
        return body


# Singleton instance
_job_runner_client: JobRunnerClient | None = None


def get_job_runner_client() -> JobRunnerClient:
    """Get the job runner client singleton."""
    global _job_runner_client
    if _job_runner_client is None:
        settings = get_settings()
        _job_runner_client = JobRunnerClient(
            token=settings.apify.token,
            actor_id=settings.apify.actor_id,
            base_url=settings.apify.base_url,
            timeout=settings.apify.request_timeout,
        )
    return _job_runner_client
