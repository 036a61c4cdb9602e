"""Output-format rules for generated content."""

import json
import math
import re
from typing import Any

from ..errors import GenerationFailed

FORMATS = ("blog", "social", "newsletter")

TWITTER_LIMIT = 280
LINKEDIN_LIMIT = 1000
NEWSLETTER_LIMIT = 2000

SOCIAL_PLATFORMS = (("twitter", TWITTER_LIMIT), ("linkedin", LINKEDIN_LIMIT))

ELLIPSIS = "..."

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def truncate_with_ellipsis(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, marking the cut with ``...``."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def cap_newsletter(text: str) -> str:
    return truncate_with_ellipsis(text, NEWSLETTER_LIMIT)


def parse_social_posts(text: str) -> list[dict[str, str]]:
    """Parse a model response into exactly two capped social posts.

    The response must be a JSON list of two ``{"platform", "content"}``
    objects, optionally wrapped in a code fence. Posts are returned as
    twitter then linkedin. When the two posts are labelled with both
    platform names they are matched by name, otherwise by position.

    Raises:
        GenerationFailed: The response is not a two-element list of posts.
    """
    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationFailed(f"Invalid social posts format: {e}") from e

    if not isinstance(parsed, list) or len(parsed) != 2:
        raise GenerationFailed("Invalid social posts format: expected exactly 2 posts")
    for post in parsed:
        if not isinstance(post, dict) or not post.get("content"):
            raise GenerationFailed("Invalid social posts format: post without content")

    # Platform labels only decide the order when they name both platforms
    labels = [str(post.get("platform", "")).lower() for post in parsed]
    if labels == [platform for platform, _ in reversed(SOCIAL_PLATFORMS)]:
        parsed = parsed[::-1]

    posts = []
    for post, (platform, limit) in zip(parsed, SOCIAL_PLATFORMS):
        posts.append(
            {
                "platform": platform,
                "content": truncate_with_ellipsis(str(post["content"]), limit),
            }
        )
    return posts


def serialize_output(output: Any) -> str:
    """Text used to estimate an output's cost."""
    if isinstance(output, str):
        return output
    return json.dumps(output)


def estimate_tokens(outputs: dict[str, Any]) -> int:
    """Approximate token cost as a quarter of the serialized length, rounded up."""
    return math.ceil(sum(len(serialize_output(output)) / 4 for output in outputs.values()))
