"""Client for the hosted actor job runner that scrapes transcripts."""

from .client import (
    FAILURE_STATUSES,
    STATUS_SUCCEEDED,
    TERMINAL_STATUSES,
    JobRunnerClient,
    get_job_runner_client,
)

__all__ = [
    "FAILURE_STATUSES",
    "STATUS_SUCCEEDED",
    "TERMINAL_STATUSES",
    "JobRunnerClient",
    "get_job_runner_client",
]
