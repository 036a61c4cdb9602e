"""Error taxonomy shared by the gateway, worker, orchestrator and API."""

QUOTA_EXCEEDED_MESSAGE = "YouTube API quota exceeded. Please try again later."
GENERATION_FAILED_MESSAGE = "Failed to generate content. Please try again."


class RepurposerError(Exception):
    """Base class for errors with a message that is safe to show users."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgument(RepurposerError):
    """A required id or format is missing or not recognised."""

    default_message = "Invalid request."


class NotFound(RepurposerError):
    """A source, channel, video or transcript does not exist."""

    default_message = "Not found."


class UpstreamError(RepurposerError):
    """A third-party API failed; the message is passed through."""

    default_message = "Upstream service request failed."


class QuotaExceeded(RepurposerError):
    """The YouTube API quota is exhausted and no cached response exists.

    Unlike other upstream failures, its message is surfaced to the user so
    they know to retry later.
    """

    default_message = QUOTA_EXCEEDED_MESSAGE


class GenerationFailed(RepurposerError):
    """An AI call or its output parsing failed, aborting the batch."""

    default_message = GENERATION_FAILED_MESSAGE


class TokenAllowanceExceeded(RepurposerError):
    """A charge would take the user over their plan allowance."""

    default_message = "Token allowance exceeded for your plan."

    def __init__(self, remaining: int, requested: int):
        self.remaining = remaining
        self.requested = requested
        super().__init__(
            f"Token allowance exceeded: {requested} tokens requested, {remaining} remaining."
        )
