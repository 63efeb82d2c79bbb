"""CAPTCHA markers in page HTML and visible text."""

import logging

from pydantic import BaseModel

from form_automation.models import CaptchaType

logger = logging.getLogger(__name__)


class DetectedCaptcha(BaseModel):
    """A CAPTCHA marker found on a page."""

    captcha_type: CaptchaType
    vendor: str
    message: str


class CaptchaDetector:
    """Cheap, non-inference CAPTCHA signals.

    HTML markers identify the vendor widget (reCAPTCHA, hCaptcha, Turnstile)
    even when it is invisible; visible-text phrases identify a challenge the
    user is actually being shown. Neither replaces the vision check: invisible
    widgets often do not block submission.
    """

    # Vendor -> markers in page HTML
    CAPTCHA_PATTERNS: dict[str, list[str]] = {
        "recaptcha": [
            "g-recaptcha",
            "recaptcha.net",
            "grecaptcha",
            "recaptcha-response",
            "google.com/recaptcha",
        ],
        "hcaptcha": [
            "h-captcha",
            "hcaptcha.com",
            "hcaptcha-response",
        ],
        "cloudflare": [
            "cf-turnstile",
            "challenges.cloudflare.com/turnstile",
        ],
    }

    VENDOR_TYPES: dict[str, CaptchaType] = {
        "recaptcha": CaptchaType.RECAPTCHA,
        "hcaptcha": CaptchaType.HCAPTCHA,
        "cloudflare": CaptchaType.OTHER,
    }

    # Phrases a user-visible challenge puts on the page
    CAPTCHA_PHRASES: list[str] = [
        "captcha",
        "verify you are human",
        "i'm not a robot",
        "i am not a robot",
        "recaptcha",
    ]

    def detect_in_html(self, page_html: str) -> DetectedCaptcha | None:
        """Detect a CAPTCHA widget from page HTML.

        Args:
            page_html: Page HTML content

        Returns:
            DetectedCaptcha if a vendor marker is present, None otherwise
        """
        html_lower = page_html.lower()

        for vendor, patterns in self.CAPTCHA_PATTERNS.items():
            for pattern in patterns:
                if pattern in html_lower:
                    logger.debug(f"Found {vendor} marker '{pattern}'")
                    return DetectedCaptcha(
                        captcha_type=self.VENDOR_TYPES[vendor],
                        vendor=vendor,
                        message=f"{vendor.title()} CAPTCHA markup present",
                    )

        return None

    def has_captcha_text(self, visible_text: str) -> bool:
        """Whether visible page text asks the user to solve a CAPTCHA."""
        text_lower = visible_text.lower()
        return any(phrase in text_lower for phrase in self.CAPTCHA_PHRASES)
