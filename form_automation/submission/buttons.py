"""Ordered selector strategies for locating form buttons."""

import logging
from collections.abc import Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from form_automation.exceptions import ButtonNotFoundError
from form_automation.perception.parsing import clean_selector

logger = logging.getLogger(__name__)

SUBMIT_BUTTON_STRATEGIES: list[str] = [
    'button:has-text("Submit")',
    'button:has-text("Send")',
    'button:has-text("Send Message")',
    'input[type="submit"]',
    'button[type="submit"]',
    "#edit-submit",
    '.btn-primary[type="submit"]',
]

NEXT_BUTTON_STRATEGIES: list[str] = [
    'button:has-text("Next")',
    'button:has-text("GO TO NEXT STEP")',
    'button:has-text("Continue")',
    'input[value*="Next" i]',
    'input[value*="GO TO NEXT STEP" i]',
    'input[value*="Continue" i]',
    "#edit-submit",
    ".btn-primary",
    'button[type="submit"]',
]

VISIBILITY_TIMEOUT_MS = 1000


def build_strategies(preferred: str | None, fallbacks: Sequence[str]) -> list[str]:
    """The perceived selector (cleaned) first, then the generic fallbacks."""
    strategies = []
    cleaned = clean_selector(preferred)
    if cleaned:
        strategies.append(cleaned)
    strategies.extend(s for s in fallbacks if s not in strategies)
    return strategies


async def locate_button(
    page: Page,
    preferred: str | None,
    fallbacks: Sequence[str],
    kind: str = "submit",
) -> tuple[Locator, str]:
    """Return the first visible button among the strategies and its selector.

    Raises:
        ButtonNotFoundError: If no strategy yields a visible element.
    """
    strategies = build_strategies(preferred, fallbacks)
    for selector in strategies:
        try:
            button = page.locator(selector).first
            if await button.is_visible(timeout=VISIBILITY_TIMEOUT_MS):
                logger.info(f"Found {kind} button with selector: {selector}")
                return button, selector
        except PlaywrightError:
            continue
    raise ButtonNotFoundError(kind, strategies)
