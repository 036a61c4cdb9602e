"""LLM service for OpenAI chat completions.

Provides a wrapper around OpenAI for content generation and transcript
structuring.
"""

from typing import Any

from openai import AsyncOpenAI, OpenAIError

from ..config import get_settings
from ..errors import GenerationFailed
from ..logging.config import get_logger

logger = get_logger(__name__)

# Only the head of long inputs is sent with generation prompts
CONTEXT_CHAR_LIMIT = 1000


GENERATION_REQUIREMENTS = """Requirements:
- Professional and engaging tone
- Well-structured content with clear sections
- SEO-optimized naturally
- Include relevant examples and data
- Add clear calls to action
- Maintain original message and context
- Format with proper paragraphs and spacing
- Optimize for readability and engagement

Please provide the content in a clear, readable format."""


BLOG_TASK = (
    "Create a comprehensive blog post that captures the key points and adds "
    "value through additional context."
)


SOCIAL_PROMPT = """Create social media posts based on this content:
{content}...

Create exactly 2 posts in this exact format (do not include backticks or json markers):
[
  {{
    "platform": "twitter",
    "content": "Your tweet content with #hashtags (max 280 chars)"
  }},
  {{
    "platform": "linkedin",
    "content": "Your professional LinkedIn post (max 1000 chars)"
  }}
]

Important:
- Keep Twitter post under 280 characters
- Keep LinkedIn post under 1000 characters
- Do not use backticks or json markers
- Use proper JSON format
- Escape quotes properly"""


NEWSLETTER_PROMPT = """Create an email newsletter based on this content:
{content}...

Source Information:
Title: {title}
Type: {source_type}
{channel_line}

Requirements:
- Start with "Subject: [Your subject line]"
- Clear introduction and value proposition
- Well-structured sections with headers
- Key takeaways and insights
- Strong call to action
- Email-friendly formatting with proper spacing
- Keep under 2000 characters total"""


STRUCTURED_TRANSCRIPT_PROMPT = """You are an AI assistant analyzing a YouTube video transcript.
Your task is to generate a structured breakdown of the video, identifying key discussions and approaches.

Format your response as HTML with proper semantic markup. Use h1, h2, h3 tags for headings, p tags for paragraphs,
ul/li for lists, and span tags with appropriate classes for timestamps or speakers if present.

Output should include:
1. A main heading (h1) with a suitable title based on content
2. A section (h2) for "Main Topics Discussed" with a list (ul/li) of major topics
3. A section (h2) for "Key Discussions" with structured paragraphs and subheadings (h3)
4. A section (h2) for "Approach & Style" explaining how information is presented
5. A section (h2) for "Important Insights" with key takeaways
6. A section (h2) for "Conclusion" summarizing the overall message

Use class="timestamp" for timestamps, class="speaker" for speakers and class="highlight"
for important quotes or facts. Make the HTML clean, valid, and well-formatted.

Here is the transcript:
{transcript}"""


class LLMService:
    """Service for LLM chat completions."""

    def __init__(self, client: AsyncOpenAI | None = None):
        """Initialize the LLM service.

        Args:
            client: Pre-built OpenAI client; created lazily from settings if omitted.
        """
        self.settings = get_settings()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai.api_key,
                base_url=self.settings.openai.base_url,
            )
        return self._client

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Run a single prompt and return the completion text.

        Args:
            prompt: The user prompt.
            system_prompt: Optional system message.
            max_tokens: Overrides the configured completion limit.

        Returns:
            The completion text.

        Raises:
            GenerationFailed: The API call failed or returned no text.
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.settings.openai.model,
                messages=messages,
                max_tokens=max_tokens or self.settings.openai.max_tokens,
                temperature=self.settings.openai.temperature,
            )
        except OpenAIError as e:
            logger.error("LLM request failed", error=str(e))
            raise GenerationFailed(f"Content generation failed: {e}") from e

        text = response.choices[0].message.content if response.choices else None
        if not text:
            logger.error("LLM returned an empty completion")
            raise GenerationFailed("Content generation failed: empty response")
        return text

    async def generate_blog(self, transcript: str, options: dict[str, Any] | None = None) -> str:
        """Generate a long-form blog post from a transcript."""
        context = f"Transcript: {transcript[:CONTEXT_CHAR_LIMIT]}..."
        task = BLOG_TASK
        if options:
            task += "\n\nOptions: " + ", ".join(f"{k}={v}" for k, v in options.items())
        prompt = f"Context Information:\n{context}\n\nTask:\n{task}\n\n{GENERATION_REQUIREMENTS}"
        return await self.generate_text(prompt)

    async def generate_social_posts(self, content: str) -> str:
        """Ask for a twitter/linkedin pair; the raw text is parsed by the caller."""
        return await self.generate_text(
            SOCIAL_PROMPT.format(content=content[:CONTEXT_CHAR_LIMIT])
        )

    async def generate_newsletter(self, content: str, source: dict[str, Any]) -> str:
        """Generate an email newsletter for a source."""
        metadata = source.get("metadata") or {}
        channel = metadata.get("channel_title")
        prompt = NEWSLETTER_PROMPT.format(
            content=content[:CONTEXT_CHAR_LIMIT],
            title=metadata.get("title") or "Untitled",
            source_type=source.get("source_type") or "Unknown",
            channel_line=f"Channel: {channel}" if channel else "",
        )
        return await self.generate_text(prompt)

    async def structure_transcript(self, transcript: str) -> str:
        """Convert a raw transcript into a structured HTML breakdown."""
        return await self.generate_text(STRUCTURED_TRANSCRIPT_PROMPT.format(transcript=transcript))


# Singleton instance
_llm_service: LLMService | None = None


def get_llm_service() -> LLMService:
    """Get the LLM service singleton.

    Returns:
        LLMService instance.
    """
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
