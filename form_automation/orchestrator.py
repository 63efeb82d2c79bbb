"""Flow Orchestrator: navigate, perceive, gate, fill, paginate, submit, verify.

Usage:
    async with FormAutomation(AutomationConfig.from_settings()) as automation:
        result = await automation.submit_to_representative("S000033", data)
        if result.requires_fallback:
            ...
"""

import base64
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from form_automation.browser import BrowserDriver
from form_automation.directory import LegislatorDirectory
from form_automation.exceptions import NavigationError, RepresentativeNotFoundError
from form_automation.filling import FormFiller, preprocess_data
from form_automation.integrations.claude import VisionClient
from form_automation.models import (
    AutomationConfig,
    CaptchaLogEntry,
    ConstituentData,
    ErrorType,
    FormAnalysis,
    SubmissionResult,
    SubmissionStatus,
)
from form_automation.perception import FieldPerception
from form_automation.submission import SubmissionController

logger = logging.getLogger(__name__)


def is_url(target: str) -> bool:
    """Whether a target is a URL rather than a directory identifier."""
    return bool(urlparse(target).scheme)


@dataclass
class RunState:
    """Mutable bookkeeping for one ``submit_to_representative`` run."""

    target: str
    start_time: float = field(default_factory=time.monotonic)
    representative_id: str | None = None
    representative_name: str | None = None
    form_url: str | None = None
    pages_filled: int = 0
    fill_errors: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.representative_name or self.target

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.start_time) * 1000)

    def result(self, **kwargs: Any) -> SubmissionResult:
        return SubmissionResult(
            time_taken_ms=self.elapsed_ms,
            pages_filled=self.pages_filled,
            representative_id=self.representative_id,
            form_url=self.form_url,
            fill_errors=list(self.fill_errors),
            **kwargs,
        )


class FormAutomation:
    """Runs contact form submissions against one shared browser driver.

    A driver passed in is borrowed and left running; otherwise the instance
    creates one and shuts it down in ``close()``. Each run gets its own
    browser context, so concurrent runs share nothing but the browser
    process.

    Args:
        config: Per-call automation config; defaults to environment settings
        driver: Browser driver to borrow
        vision: Vision client for perception and verification
        directory: Representative directory for identifier lookups
    """

    def __init__(
        self,
        config: AutomationConfig | None = None,
        driver: BrowserDriver | None = None,
        vision: VisionClient | None = None,
        directory: LegislatorDirectory | None = None,
        filler: FormFiller | None = None,
    ) -> None:
        self.config = config or AutomationConfig.from_settings()
        self._owns_driver = driver is None
        self.driver = driver or BrowserDriver(self.config.browser)
        self.vision = vision or VisionClient(self.config.analyzer)
        self.directory = directory or LegislatorDirectory()
        self.perception = FieldPerception(self.vision, self.driver)
        self.filler = filler or FormFiller()
        self.controller = SubmissionController.create(
            self.driver,
            self.vision,
            confirm_with_vision=self.config.verify_with_vision_always,
        )
        self.captcha_log: list[CaptchaLogEntry] = []

    async def __aenter__(self) -> "FormAutomation":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Shut down the browser if this instance created it."""
        if self._owns_driver:
            await self.driver.shutdown()

    def get_representatives_with_captchas(self) -> list[CaptchaLogEntry]:
        """Representatives whose forms were found behind a CAPTCHA in this instance."""
        return list(self.captcha_log)

    async def submit_to_representative(self, target: str, data: ConstituentData) -> SubmissionResult:
        """Fill and submit one representative's contact form.

        Never raises: every failure becomes a ``SubmissionResult`` with a
        non-success status.

        Args:
            target: Contact form URL or bioguide ID
            data: Constituent data to submit

        Returns:
            Terminal SubmissionResult for the run
        """
        state = RunState(target=target)

        try:
            self.resolve_target(state)
        except RepresentativeNotFoundError as e:
            logger.error(str(e))
            return state.result(
                success=False,
                status=SubmissionStatus.NETWORK_ERROR,
                error_type=ErrorType.NETWORK,
                message=str(e),
            )

        logger.info(f"Opening contact form: {state.form_url}")
        try:
            async with self.driver.session(self.config.browser.timeout) as page:
                try:
                    return await self._run(page, state, data)
                except Exception as e:
                    return await self._failure(page, state, e)
        except Exception as e:
            logger.exception(f"Could not open a browser session: {e}")
            return self._failure_result(state, e)

    def resolve_target(self, state: RunState) -> None:
        """Fill in the form URL (and representative) for a run's target.

        Raises:
            RepresentativeNotFoundError: If an identifier has no contact form.
        """
        if is_url(state.target):
            state.form_url = state.target
            return

        state.representative_id = state.target
        info = self.directory.lookup(state.target)
        if info is None:
            raise RepresentativeNotFoundError(state.target)
        state.form_url = info.contact_form_url
        state.representative_name = info.name

    async def _run(self, page: Page, state: RunState, data: ConstituentData) -> SubmissionResult:
        await self.driver.navigate(page, state.form_url)
        await self._debug_screenshot(page, "01-initial.png")

        processed = preprocess_data(data)

        logger.info("Analyzing form with Claude Vision...")
        analysis = await self.perception.analyze(page)
        logger.info(
            f"Found {len(analysis.fields)} fields "
            f"(captcha={analysis.has_captcha}, multi_page={analysis.is_multi_page})"
        )
        if analysis.has_captcha:
            return self._captcha_result(state, analysis, page_number=1)

        await self._fill_page(page, state, analysis, processed)

        while analysis.is_multi_page and analysis.next_button_selector:
            if state.pages_filled >= self.config.max_pages:
                logger.warning(f"Stopping after {state.pages_filled} pages")
                break

            logger.info("Navigating to next page...")
            if not await self.controller.go_to_next_page(page, analysis):
                break

            analysis = await self.perception.analyze(page)
            if analysis.has_captcha:
                return self._captcha_result(state, analysis, page_number=state.pages_filled + 1)

            await self._fill_page(page, state, analysis, processed)

        if not self.config.submit:
            logger.info("Dry run - not submitting")
            return state.result(
                success=True,
                status=SubmissionStatus.SUCCESS,
                message="Dry run completed - form was filled but not submitted",
            )

        logger.info("Submitting form...")
        submitted = await self.controller.submit(page, analysis)
        await self._debug_screenshot(page, "03-result.png")

        logger.info(f"Submission to {state.display_name} finished: {submitted.status.value}")
        return submitted.model_copy(
            update={
                "time_taken_ms": state.elapsed_ms,
                "pages_filled": state.pages_filled,
                "representative_id": state.representative_id,
                "form_url": state.form_url,
                "fill_errors": list(state.fill_errors),
            }
        )

    async def _fill_page(
        self,
        page: Page,
        state: RunState,
        analysis: FormAnalysis,
        data: ConstituentData,
    ) -> None:
        fill_result = await self.filler.fill(page, analysis, data)
        state.pages_filled += 1
        state.fill_errors.extend(fill_result.errors)
        if not fill_result.success:
            logger.warning(f"Errors filling page {state.pages_filled}: {fill_result.errors}")
        await self._debug_screenshot(page, f"02-filled-page-{state.pages_filled}.png")

    def _captcha_result(self, state: RunState, analysis: FormAnalysis, page_number: int) -> SubmissionResult:
        captcha_name = analysis.captcha_type.value if analysis.captcha_type else "unknown"
        logger.warning(
            f"[CAPTCHA] {state.display_name} has CAPTCHA on page {page_number} "
            f"({captcha_name}): {state.form_url}"
        )

        if state.representative_id:
            self.captcha_log.append(
                CaptchaLogEntry(
                    bioguide_id=state.representative_id,
                    name=state.display_name,
                    form_url=state.form_url or state.target,
                    captcha_type=analysis.captcha_type,
                    page=page_number,
                )
            )

        where = "" if page_number == 1 else f" on page {page_number}"
        return state.result(
            success=False,
            status=SubmissionStatus.CAPTCHA_REQUIRED,
            error_type=ErrorType.CAPTCHA,
            message=f"CAPTCHA detected{where}, falling back to a non-automated channel",
        )

    async def _failure(self, page: Page, state: RunState, error: Exception) -> SubmissionResult:
        logger.exception(f"Automation error for {state.display_name}: {error}")

        screenshot_base64 = None
        try:
            screenshot = await self.driver.screenshot(page, full_page=True)
            screenshot_base64 = base64.b64encode(screenshot).decode("ascii")
            await self._debug_screenshot(page, "error.png")
        except PlaywrightError as e:
            logger.debug(f"Could not capture error screenshot: {e.message}")

        return self._failure_result(state, error, screenshot_base64)

    def _failure_result(
        self,
        state: RunState,
        error: Exception,
        screenshot_base64: str | None = None,
    ) -> SubmissionResult:
        if isinstance(error, NavigationError):
            status = SubmissionStatus.NETWORK_ERROR
            error_type = ErrorType.TIMEOUT if error.timed_out else ErrorType.NETWORK
        else:
            status = SubmissionStatus.UNKNOWN_ERROR
            error_type = ErrorType.UNKNOWN

        return state.result(
            success=False,
            status=status,
            error_type=error_type,
            message=f"Automation failed: {error}",
            screenshot_base64=screenshot_base64,
        )

    async def _debug_screenshot(self, page: Page, filename: str) -> None:
        if self.config.debug_dir is None:
            return
        await self.driver.screenshot(page, full_page=True, path=Path(self.config.debug_dir) / filename)

    async def analyze_form_only(self, url: str) -> FormAnalysis:
        """Perceive a form without filling or submitting it."""
        async with self.driver.session(self.config.browser.timeout) as page:
            await self.driver.navigate(page, url)
            return await self.perception.analyze(page)


async def submit_to_representative(
    target: str,
    data: ConstituentData,
    config: AutomationConfig | None = None,
) -> SubmissionResult:
    """One-shot submission that owns a browser for the duration of the call.

    Never raises: a failure to set up the automation (for example a missing
    API key) is returned as an ``unknown_error`` result.
    """
    try:
        automation = FormAutomation(config)
    except Exception as e:
        logger.exception(f"Could not set up form automation: {e}")
        state = RunState(target=target)
        if is_url(target):
            state.form_url = target
        else:
            state.representative_id = target
        return state.result(
            success=False,
            status=SubmissionStatus.UNKNOWN_ERROR,
            error_type=ErrorType.UNKNOWN,
            message=f"Automation failed: {e}",
        )

    async with automation:
        return await automation.submit_to_representative(target, data)


async def analyze_form_only(url: str, config: AutomationConfig | None = None) -> FormAnalysis:
    """One-shot form analysis that owns a browser for the duration of the call."""
    async with FormAutomation(config) as automation:
        return await automation.analyze_form_only(url)
