"""Tests for the Claude vision client."""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from form_automation.exceptions import InferenceError
from form_automation.integrations.claude import VisionClient, get_claude_client
from form_automation.models import AnalyzerConfig


def make_client(response=None, error=None) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=error)
    return client


class TestVisionClient:
    """Tests for VisionClient.analyze_image."""

    @pytest.mark.asyncio
    async def test_sends_image_then_prompt(self, mock_anthropic_response):
        client = make_client(mock_anthropic_response('{"fields": []}'))
        vision = VisionClient(AnalyzerConfig(model="claude-test", max_tokens=1000), client=client)

        with patch("form_automation.integrations.claude.client.get_client"):
            text = await vision.analyze_image(b"png-bytes", "Describe the form")

        assert text == '{"fields": []}'
        kwargs = client.messages.create.await_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 1000
        image_block, text_block = kwargs["messages"][0]["content"]
        assert image_block["source"]["data"] == base64.b64encode(b"png-bytes").decode("utf-8")
        assert image_block["source"]["media_type"] == "image/png"
        assert text_block == {"type": "text", "text": "Describe the form"}

    @pytest.mark.asyncio
    async def test_max_tokens_override(self, mock_anthropic_response):
        client = make_client(mock_anthropic_response("{}"))
        vision = VisionClient(AnalyzerConfig(model="claude-test"), client=client)

        with patch("form_automation.integrations.claude.client.get_client"):
            await vision.analyze_image(b"png", "CAPTCHA?", max_tokens=256)

        assert client.messages.create.await_args.kwargs["max_tokens"] == 256

    @pytest.mark.asyncio
    async def test_joins_text_blocks(self):
        response = MagicMock()
        response.content = [
            MagicMock(type="text", text='{"a": '),
            MagicMock(type="tool_use"),
            MagicMock(type="text", text="1}"),
        ]
        response.usage = MagicMock(input_tokens=10, output_tokens=5)
        vision = VisionClient(AnalyzerConfig(model="claude-test"), client=make_client(response))

        with patch("form_automation.integrations.claude.client.get_client"):
            assert await vision.analyze_image(b"png", "x") == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_api_error_raises_inference_error(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client = make_client(error=anthropic.APIConnectionError(request=request))
        vision = VisionClient(AnalyzerConfig(model="claude-test"), client=client)

        with patch("form_automation.integrations.claude.client.get_client"):
            with pytest.raises(InferenceError):
                await vision.analyze_image(b"png", "x")


class TestGetClaudeClient:
    """Tests for client construction."""

    def test_requires_api_key(self):
        settings = MagicMock(bedrock_enabled=False, anthropic_api_key=None, anthropic_timeout=120.0)

        with patch("form_automation.integrations.claude.client.get_settings", return_value=settings):
            with pytest.raises(ValueError):
                get_claude_client()

    def test_direct_api(self):
        settings = MagicMock(bedrock_enabled=False, anthropic_api_key="key", anthropic_timeout=120.0)

        with patch("form_automation.integrations.claude.client.get_settings", return_value=settings):
            client = get_claude_client()

        assert isinstance(client, anthropic.AsyncAnthropic)
