"""Form perception using Claude Vision plus a DOM cross-check.

The vision pass is good at what a field *means* and unreliable at whether it
saw every field or every option; a DOM scan is the reverse. ``perceive``
runs the vision pass and ``enhance`` merges in what the DOM knows.
"""

import logging
from typing import Any

from playwright.async_api import Page

from form_automation.browser import BrowserDriver, scripts
from form_automation.exceptions import PerceptionError
from form_automation.integrations.claude import VisionClient
from form_automation.models import CaptchaCheck, DataType, FieldType, FormAnalysis, FormField
from form_automation.perception.parsing import (
    clamp_field_type,
    parse_analysis_response,
    parse_captcha_check,
)
from form_automation.perception.prompts import CAPTCHA_CHECK_PROMPT, FORM_ANALYSIS_PROMPT

logger = logging.getLogger(__name__)

CAPTCHA_CHECK_MAX_TOKENS = 256

OPTION_FIELD_TYPES = {FieldType.SELECT, FieldType.RADIO}


class FieldPerception:
    """Turns a rendered page into a ``FormAnalysis``.

    Usage:
        perception = FieldPerception(vision, driver)
        analysis = await perception.perceive(page)
        analysis = await perception.enhance(page, analysis)
    """

    def __init__(self, vision: VisionClient, driver: BrowserDriver) -> None:
        self.vision = vision
        self.driver = driver

    async def perceive(self, page: Page) -> FormAnalysis:
        """Analyze the current page with one full-page screenshot.

        Undecodable replies yield an empty analysis with zero confidence
        rather than an exception; ``enhance`` can still recover the fields.
        Inference transport failures propagate as ``InferenceError``.
        """
        await self.driver.scroll_page(page)
        screenshot = await self.driver.screenshot(page, full_page=True)

        response_text = await self.vision.analyze_image(screenshot, FORM_ANALYSIS_PROMPT)

        try:
            analysis = parse_analysis_response(response_text)
        except PerceptionError as e:
            logger.warning(f"Form analysis response could not be parsed: {e}")
            return FormAnalysis(confidence=0.0, notes=f"Vision analysis unparseable: {e}")

        logger.info(
            f"Vision found {len(analysis.fields)} fields "
            f"(captcha={analysis.has_captcha}, multi_page={analysis.is_multi_page}, "
            f"confidence={analysis.confidence:.2f})"
        )
        return analysis

    async def enhance(self, page: Page, analysis: FormAnalysis) -> FormAnalysis:
        """Merge DOM-discovered controls and option lists into an analysis.

        Controls the vision pass missed are appended with ``data_type=other``;
        select/radio fields without options get the DOM's option list.
        """
        dom_controls: list[dict[str, Any]] = await page.evaluate(scripts.FORM_CONTROLS) or []

        fields = [field.model_copy() for field in analysis.fields]
        added = 0
        backfilled = 0

        for control in dom_controls:
            selector = control.get("selector")
            if not selector:
                continue

            name = control.get("name") or None
            options = [str(o) for o in control.get("options") or [] if o]
            existing = next(
                (f for f in fields if f.selector == selector or (name and f.name == name)),
                None,
            )

            if existing is None:
                fields.append(
                    FormField(
                        selector=selector,
                        type=clamp_field_type(control.get("type")),
                        label=control.get("label") or name or control.get("id") or "",
                        name=name,
                        required=bool(control.get("required")),
                        options=options or None,
                        data_type=DataType.OTHER,
                    )
                )
                added += 1
            elif options and not existing.options and existing.type in OPTION_FIELD_TYPES:
                existing.options = options
                backfilled += 1

        if added or backfilled:
            logger.info(f"DOM scan added {added} fields and backfilled options for {backfilled}")

        return analysis.model_copy(update={"fields": fields})

    async def analyze(self, page: Page) -> FormAnalysis:
        """Vision pass followed by the DOM cross-check."""
        analysis = await self.perceive(page)
        return await self.enhance(page, analysis)

    async def check_captcha(self, screenshot: bytes) -> CaptchaCheck:
        """Lightweight CAPTCHA-only perception of an existing screenshot."""
        response_text = await self.vision.analyze_image(
            screenshot,
            CAPTCHA_CHECK_PROMPT,
            max_tokens=CAPTCHA_CHECK_MAX_TOKENS,
        )
        return parse_captcha_check(response_text)
