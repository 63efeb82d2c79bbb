"""Submission Controller: clicks submit (or next) and classifies the result."""

import asyncio
import base64
import logging
import time

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from form_automation.browser import BrowserDriver
from form_automation.exceptions import ButtonNotFoundError
from form_automation.integrations.claude import VisionClient
from form_automation.models import ErrorType, FormAnalysis, SubmissionResult, SubmissionStatus
from form_automation.submission.buttons import (
    NEXT_BUTTON_STRATEGIES,
    SUBMIT_BUTTON_STRATEGIES,
    locate_button,
)
from form_automation.submission.verifier import SubmissionVerifier

logger = logging.getLogger(__name__)

SUBMIT_IDLE_TIMEOUT_MS = 30000
SUBMIT_SETTLE_MS = 2000
NEXT_IDLE_TIMEOUT_MS = 15000
NEXT_SETTLE_MS = 1500


def elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


class SubmissionController:
    """Locates and invokes the submit action, then verifies the outcome.

    Usage:
        controller = SubmissionController(driver, verifier)
        result = await controller.submit(page, analysis)
    """

    def __init__(self, driver: BrowserDriver, verifier: SubmissionVerifier) -> None:
        self.driver = driver
        self.verifier = verifier

    @classmethod
    def create(
        cls,
        driver: BrowserDriver,
        vision: VisionClient,
        confirm_with_vision: bool = False,
    ) -> "SubmissionController":
        return cls(driver, SubmissionVerifier(vision, driver, confirm_with_vision=confirm_with_vision))

    async def click_and_settle(self, page: Page, button: Locator, idle_timeout_ms: int, settle_ms: int) -> None:
        """Click while waiting for network idle; sites that never go idle are tolerated."""
        await asyncio.gather(
            self._wait_for_network_idle(page, idle_timeout_ms),
            button.click(),
        )
        await page.wait_for_timeout(settle_ms)

    async def _wait_for_network_idle(self, page: Page, timeout_ms: int) -> None:
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightError:
            logger.debug("Network did not go idle after click")

    async def submit(self, page: Page, analysis: FormAnalysis) -> SubmissionResult:
        """Submit the form and classify the resulting page.

        ``time_taken_ms`` covers only the submission; ``pages_filled`` is left
        for the orchestrator to set.

        Returns:
            SubmissionResult; a missing button is ``unknown_error`` and a
            browser failure during the click is ``network_error``.
        """
        start_time = time.monotonic()

        try:
            button, selector = await locate_button(
                page, analysis.submit_button_selector, SUBMIT_BUTTON_STRATEGIES, kind="submit"
            )
        except ButtonNotFoundError as e:
            logger.error(str(e))
            return SubmissionResult(
                success=False,
                status=SubmissionStatus.UNKNOWN_ERROR,
                error_type=ErrorType.UNKNOWN,
                message=f"Submission failed: {e}",
                screenshot_base64=await self._error_screenshot(page),
                time_taken_ms=elapsed_ms(start_time),
            )

        try:
            logger.info(f"Clicking submit button: {selector}")
            await self.click_and_settle(page, button, SUBMIT_IDLE_TIMEOUT_MS, SUBMIT_SETTLE_MS)
            screenshot = await self.driver.screenshot(page, full_page=True)
        except PlaywrightError as e:
            logger.error(f"Submit error: {e.message}")
            return SubmissionResult(
                success=False,
                status=SubmissionStatus.NETWORK_ERROR,
                error_type=ErrorType.NETWORK,
                message=f"Submission failed: {e.message}",
                screenshot_base64=await self._error_screenshot(page),
                time_taken_ms=elapsed_ms(start_time),
            )

        verdict = await self.verifier.verify(page, screenshot)
        return SubmissionResult.from_verdict(
            verdict,
            screenshot_base64=base64.b64encode(screenshot).decode("ascii"),
            time_taken_ms=elapsed_ms(start_time),
        )

    async def go_to_next_page(self, page: Page, analysis: FormAnalysis) -> bool:
        """Advance a multi-page form.

        Returns:
            True if a next button was clicked, False if none could be found
        """
        if not analysis.is_multi_page:
            return False

        try:
            button, selector = await locate_button(
                page, analysis.next_button_selector, NEXT_BUTTON_STRATEGIES, kind="next"
            )
        except ButtonNotFoundError as e:
            logger.warning(str(e))
            return False

        logger.info(f"Clicking next button: {selector}")
        await self.click_and_settle(page, button, NEXT_IDLE_TIMEOUT_MS, NEXT_SETTLE_MS)
        return True

    async def _error_screenshot(self, page: Page) -> str | None:
        try:
            screenshot = await self.driver.screenshot(page, full_page=True)
        except PlaywrightError:
            return None
        return base64.b64encode(screenshot).decode("ascii")
