"""Claude SDK client wrapper with observability - supports both Anthropic API and AWS Bedrock."""

import base64
import logging
from typing import Any, Union

import anthropic
from anthropic import AsyncAnthropic, AsyncAnthropicBedrock
from langfuse import get_client, observe

from form_automation.config import get_settings
from form_automation.exceptions import InferenceError
from form_automation.models import AnalyzerConfig

logger = logging.getLogger(__name__)

# Type alias for client types
ClaudeClient = Union[AsyncAnthropic, AsyncAnthropicBedrock]


def get_claude_client(api_key: str | None = None, timeout: float | None = None) -> ClaudeClient:
    """
    Get Claude client instance - Bedrock or direct Anthropic API.

    Args:
        api_key: Optional API key (only used for direct Anthropic, ignored for Bedrock).
        timeout: Request timeout in seconds.

    Returns:
        Configured async client (AsyncAnthropicBedrock if BEDROCK_ENABLED, else AsyncAnthropic).

    Raises:
        ValueError: If no API key is available and Bedrock is not enabled.
    """
    settings = get_settings()
    timeout = timeout or settings.anthropic_timeout

    if settings.bedrock_enabled:
        return AsyncAnthropicBedrock(
            aws_region=settings.bedrock_region,
            timeout=timeout,
        )

    key = api_key or settings.anthropic_api_key
    if not key:
        raise ValueError(
            "Anthropic API key is required when Bedrock is not enabled. "
            "Set ANTHROPIC_API_KEY environment variable or enable BEDROCK_ENABLED=true."
        )
    return AsyncAnthropic(api_key=key, timeout=timeout)


def get_model_id() -> str:
    """Get the appropriate model ID based on configuration."""
    return get_settings().model_id


class VisionClient:
    """Sends page screenshots plus an instruction to a vision-capable model.

    Returns the raw text of the reply and leaves decoding to the caller,
    which treats it as untrusted input.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        client: ClaudeClient | None = None,
    ) -> None:
        config = config or AnalyzerConfig()
        self.model = config.model or get_model_id()
        self.max_tokens = config.max_tokens
        self.client: ClaudeClient = client or get_claude_client(config.api_key, config.timeout)

    @observe(as_type="generation")
    async def analyze_image(
        self,
        image: bytes,
        prompt: str,
        max_tokens: int | None = None,
        media_type: str = "image/png",
        **kwargs: Any,
    ) -> str:
        """
        Ask the model about a screenshot.

        Args:
            image: Raw image bytes.
            prompt: Instruction text sent after the image.
            max_tokens: Output budget (defaults to the configured maximum).
            media_type: MIME type of the image.
            **kwargs: Additional parameters for the API.

        Returns:
            Text content from Claude's response.

        Raises:
            InferenceError: If the API call fails or times out.
        """
        max_tokens = max_tokens or self.max_tokens
        messages = [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": media_type,
                            "data": base64.b64encode(image).decode("utf-8"),
                        },
                    },
                    {"type": "text", "text": prompt},
                ],
            }
        ]

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=messages,
                **kwargs,
            )
        except anthropic.APIError as e:
            logger.error(f"Claude vision call failed: {e}")
            raise InferenceError(f"Claude API error: {e}") from e

        if response.usage:
            get_client().update_current_generation(
                model=self.model,
                usage_details={
                    "input": response.usage.input_tokens,
                    "output": response.usage.output_tokens,
                },
                model_parameters={"max_tokens": max_tokens},
            )

        text_content = ""
        for block in response.content:
            if block.type == "text":
                text_content += block.text

        return text_content
