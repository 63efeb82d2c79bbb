"""Post-submit classification.

Text heuristics run first against the page's visible text; an unambiguous
heuristic verdict is returned without inference. Only ambiguous pages (both
or neither kind of phrase present) are sent to Claude Vision.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from form_automation.browser import BrowserDriver, scripts
from form_automation.exceptions import InferenceError
from form_automation.integrations.claude import VisionClient
from form_automation.models import SubmissionStatus, ValidationIssue, Verdict
from form_automation.perception.detector import CaptchaDetector
from form_automation.perception.parsing import parse_verification_response
from form_automation.perception.prompts import VERIFICATION_PROMPT

logger = logging.getLogger(__name__)

VERIFICATION_MAX_TOKENS = 1024

SUCCESS_PHRASES: list[str] = [
    "thank you",
    "message sent",
    "has been received",
    "successfully submitted",
    "we have received",
]

ERROR_PHRASES: list[str] = [
    "error",
    "required",
    "invalid",
    "please correct",
    "please fix",
]

# Label, optional separator, then a token with at least one digit.
CONFIRMATION_PATTERN = re.compile(
    r"(?:confirmation|reference|tracking|case)\s*(?:number|no\.?|#|id|code)?\s*[:#]?\s*"
    r"((?=[A-Z0-9-]*\d)[A-Z0-9-]{4,})",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class TextSignals:
    """Which phrase classes appear in a page's visible text."""

    success: bool
    error: bool
    captcha: bool

    @classmethod
    def scan(cls, text: str, detector: CaptchaDetector) -> "TextSignals":
        text_lower = text.lower()
        return cls(
            success=any(p in text_lower for p in SUCCESS_PHRASES),
            error=any(p in text_lower for p in ERROR_PHRASES),
            captcha=detector.has_captcha_text(text_lower),
        )


@dataclass(frozen=True)
class HeuristicRule:
    """An unambiguous text signal pattern and the verdict it implies."""

    name: str
    applies: Callable[[TextSignals], bool]
    status: SubmissionStatus
    message: str


HEURISTIC_RULES: list[HeuristicRule] = [
    HeuristicRule(
        "success",
        lambda s: s.success and not s.error and not s.captcha,
        SubmissionStatus.SUCCESS,
        'Form submitted successfully (detected "thank you" message)',
    ),
    HeuristicRule(
        "captcha",
        lambda s: s.captcha and not s.success,
        SubmissionStatus.CAPTCHA_REQUIRED,
        "CAPTCHA verification required",
    ),
    HeuristicRule(
        "validation",
        lambda s: s.error and not s.success,
        SubmissionStatus.VALIDATION_ERROR,
        "Form submission failed (detected error messages)",
    ),
]


def match_heuristic(signals: TextSignals) -> HeuristicRule | None:
    """First rule whose signal pattern holds, or None when the page is ambiguous."""
    return next((rule for rule in HEURISTIC_RULES if rule.applies(signals)), None)


def extract_confirmation_number(text: str) -> str | None:
    """Confirmation/reference number shown on a page, if any."""
    match = CONFIRMATION_PATTERN.search(text)
    return match.group(1) if match else None


class SubmissionVerifier:
    """Classifies the page shown after a submit click.

    Args:
        vision: Vision client used for ambiguous pages
        driver: Browser driver used to read page text
        confirm_with_vision: Also send unambiguous heuristic verdicts to the
            vision model; the heuristic verdict stands if inference fails.
    """

    def __init__(
        self,
        vision: VisionClient,
        driver: BrowserDriver,
        confirm_with_vision: bool = False,
        detector: CaptchaDetector | None = None,
    ) -> None:
        self.vision = vision
        self.driver = driver
        self.confirm_with_vision = confirm_with_vision
        self.detector = detector or CaptchaDetector()

    async def verify(self, page: Page, screenshot: bytes) -> Verdict:
        """Classify the post-submit page; never raises for inference problems."""
        text = await self.driver.visible_text(page)
        signals = TextSignals.scan(text, self.detector)
        rule = match_heuristic(signals)

        if rule is None:
            logger.info(f"Heuristics ambiguous ({signals}), asking vision model")
            return await self.verify_with_vision(screenshot)

        verdict = await self.heuristic_verdict(page, rule, text)
        logger.info(f"Heuristic verdict: {verdict.status.value} (rule={rule.name})")

        if not self.confirm_with_vision:
            return verdict

        confirmed = await self.verify_with_vision(screenshot)
        if confirmed.status == SubmissionStatus.UNKNOWN_ERROR:
            return verdict
        return confirmed

    async def heuristic_verdict(self, page: Page, rule: HeuristicRule, text: str) -> Verdict:
        issues = None
        if rule.status == SubmissionStatus.VALIDATION_ERROR:
            issues = await self.invalid_fields(page) or None

        return Verdict(
            success=rule.status == SubmissionStatus.SUCCESS,
            status=rule.status,
            message=rule.message,
            confirmation_number=extract_confirmation_number(text)
            if rule.status == SubmissionStatus.SUCCESS
            else None,
            validation_errors=issues,
        )

    async def invalid_fields(self, page: Page) -> list[ValidationIssue]:
        """Fields the page marks ``aria-invalid``."""
        try:
            raw = await page.evaluate(scripts.INVALID_FIELDS) or []
        except PlaywrightError as e:
            logger.warning(f"Could not read invalid fields: {e.message}")
            return []
        return [ValidationIssue(field=str(i["field"]), error=str(i["error"])) for i in raw]

    async def verify_with_vision(self, screenshot: bytes) -> Verdict:
        try:
            response_text = await self.vision.analyze_image(
                screenshot,
                VERIFICATION_PROMPT,
                max_tokens=VERIFICATION_MAX_TOKENS,
            )
        except InferenceError as e:
            logger.error(f"Vision verification failed: {e}")
            return Verdict(
                success=False,
                status=SubmissionStatus.UNKNOWN_ERROR,
                message="Unable to verify submission result",
            )

        return parse_verification_response(response_text)
