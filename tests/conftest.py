"""Pytest configuration and fixtures."""

import os
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from form_automation.browser import BrowserDriver
from form_automation.models import ConstituentData

# Set test environment
os.environ["ANTHROPIC_API_KEY"] = "test-key"
os.environ.pop("LANGFUSE_SECRET_KEY", None)
os.environ.pop("LANGFUSE_PUBLIC_KEY", None)


@pytest.fixture
def mock_anthropic_response():
    """Create a mock Anthropic API response."""

    def _create_response(text: str, input_tokens: int = 100, output_tokens: int = 200):
        mock_response = MagicMock()
        mock_response.content = [MagicMock(type="text", text=text)]
        mock_response.usage = MagicMock(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        return mock_response

    return _create_response


class ScriptedVision:
    """Stand-in vision client that replays canned replies in order."""

    def __init__(self, *responses: str):
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def analyze_image(self, image: bytes, prompt: str, max_tokens: int | None = None, **kwargs) -> str:
        self.calls.append({"image": image, "prompt": prompt, "max_tokens": max_tokens})
        if not self.responses:
            raise AssertionError("ScriptedVision ran out of responses")
        return self.responses.pop(0)


@pytest.fixture
def scripted_vision():
    """Factory for a vision client replaying the given replies."""
    return ScriptedVision


@pytest.fixture
def constituent():
    """Sample constituent data."""
    return ConstituentData(
        prefix="Ms.",
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="(775) 555-0100",
        street="123 Main St",
        city="Reno",
        state="NV",
        zip="89501-1234",
        topic="Healthcare",
        subject="Support for rural clinics",
        message="Please support funding for rural health clinics.",
    )


@pytest.fixture
def mock_page():
    """A Playwright page whose async methods are AsyncMocks."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.fill = AsyncMock()
    page.select_option = AsyncMock()
    page.click = AsyncMock()
    page.check = AsyncMock()
    page.evaluate = AsyncMock(return_value=[])
    page.wait_for_selector = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"png")
    page.content = AsyncMock(return_value="<html></html>")

    locator = MagicMock()
    locator.first = locator
    locator.is_visible = AsyncMock(return_value=True)
    locator.is_disabled = AsyncMock(return_value=False)
    locator.click = AsyncMock()
    page.locator = MagicMock(return_value=locator)
    return page


@pytest.fixture
def mock_driver(mock_page):
    """A BrowserDriver whose session yields ``mock_page``."""
    driver = MagicMock(spec=BrowserDriver)
    driver.navigate = AsyncMock()
    driver.screenshot = AsyncMock(return_value=b"png")
    driver.scroll_page = AsyncMock()
    driver.visible_text = AsyncMock(return_value="")
    driver.page_html = AsyncMock(return_value="<html></html>")
    driver.shutdown = AsyncMock()
    driver.released = 0

    @asynccontextmanager
    async def session(timeout=None):
        try:
            yield mock_page
        finally:
            driver.released += 1

    driver.session = session
    return driver
