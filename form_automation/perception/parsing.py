"""Decoding of untrusted vision model replies.

Replies are untrusted input: they may be wrapped in markdown fences, carry
prose around the JSON, be truncated, or use values outside our closed sets.
Decoding failures raise ``PerceptionError``; everything that decodes is
clamped onto the closed sets before a model is built.
"""

import json
import logging
import math
import re
from enum import Enum
from typing import Any, TypeVar

from form_automation.exceptions import PerceptionError
from form_automation.models import (
    CaptchaCheck,
    CaptchaType,
    DataType,
    FieldType,
    FormAnalysis,
    FormField,
    SubmissionStatus,
    ValidationIssue,
    Verdict,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")
_CONTAINS_PSEUDO = re.compile(r":contains\([^)]*\)")


def extract_json_object(response_text: str) -> dict[str, Any]:
    """Pull the first JSON object out of a model reply.

    Raises:
        PerceptionError: If no JSON object can be decoded.
    """
    cleaned = response_text.strip()
    cleaned = _FENCE_START.sub("", cleaned)
    cleaned = _FENCE_END.sub("", cleaned)

    start = cleaned.find("{")
    if start < 0:
        raise PerceptionError("No JSON object found in response", raw_response=response_text)

    try:
        parsed, _ = json.JSONDecoder().raw_decode(cleaned[start:])
    except json.JSONDecodeError as e:
        raise PerceptionError(f"Failed to parse response: {e}", raw_response=response_text) from e

    if not isinstance(parsed, dict):
        raise PerceptionError("Response JSON is not an object", raw_response=response_text)

    return parsed


def _clamp(enum_cls: type[E], value: Any, default: E | None) -> E | None:
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    for member in enum_cls:
        if member.value.lower() == text:
            return member
    return default


def clamp_field_type(value: Any) -> FieldType:
    """Coerce a field type onto the closed set, defaulting to text."""
    return _clamp(FieldType, value, FieldType.TEXT)  # type: ignore[return-value]


def clamp_data_type(value: Any) -> DataType:
    """Coerce a data type onto the closed set, defaulting to other."""
    return _clamp(DataType, value, DataType.OTHER)  # type: ignore[return-value]


def clamp_captcha_type(value: Any) -> CaptchaType | None:
    """Coerce a CAPTCHA type onto the closed set; unknown values become absent."""
    return _clamp(CaptchaType, value, None)


def clamp_status(value: Any) -> SubmissionStatus:
    """Coerce a submission status onto the closed set, defaulting to unknown_error."""
    return _clamp(SubmissionStatus, value, SubmissionStatus.UNKNOWN_ERROR)  # type: ignore[return-value]


def clean_selector(selector: Any) -> str | None:
    """Strip pseudo-classes Playwright cannot evaluate (``:contains``)."""
    if not selector:
        return None
    cleaned = _CONTAINS_PSEUDO.sub("", str(selector)).strip()
    return cleaned or None


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _flag(value: Any) -> bool:
    """A reply flag; only JSON true or the string "true" count as set."""
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def _optional_str(value: Any) -> str | None:
    return str(value) if value not in (None, "") else None


def _confidence(value: Any, default: float) -> float:
    number = _number(value)
    if number is None:
        return default
    return min(max(float(number), 0.0), 1.0)


def parse_field(raw: Any) -> FormField | None:
    """Build one ``FormField`` from a raw reply entry, or None if unusable."""
    if not isinstance(raw, dict):
        return None

    selector = clean_selector(raw.get("selector"))
    if not selector:
        return None

    options = raw.get("options")
    max_length = _number(raw.get("maxLength"))

    return FormField(
        selector=selector,
        type=clamp_field_type(raw.get("type")),
        label=str(raw.get("label") or ""),
        name=_optional_str(raw.get("name")),
        required=_flag(raw.get("required")),
        options=[str(o) for o in options] if isinstance(options, list) else None,
        data_type=clamp_data_type(raw.get("dataType")),
        placeholder=_optional_str(raw.get("placeholder")),
        max_length=int(max_length) if max_length is not None else None,
    )


def parse_analysis_response(response_text: str) -> FormAnalysis:
    """Parse a form-analysis reply into a ``FormAnalysis``.

    Raises:
        PerceptionError: If the reply holds no decodable JSON object.
    """
    parsed = extract_json_object(response_text)

    fields = []
    raw_fields = parsed.get("fields")
    if isinstance(raw_fields, list):
        for raw in raw_fields:
            field = parse_field(raw)
            if field is not None:
                fields.append(field)

    current_page = _number(parsed.get("currentPage"))
    total_pages = _number(parsed.get("totalPages"))
    has_captcha = _flag(parsed.get("hasCaptcha"))

    return FormAnalysis(
        fields=fields,
        submit_button_selector=clean_selector(parsed.get("submitButtonSelector"))
        or 'button[type="submit"]',
        has_captcha=has_captcha,
        captcha_type=clamp_captcha_type(parsed.get("captchaType")) if has_captcha else None,
        is_multi_page=_flag(parsed.get("isMultiPage")),
        next_button_selector=clean_selector(parsed.get("nextButtonSelector")),
        current_page=max(int(current_page), 1) if current_page is not None else 1,
        total_pages=int(total_pages) if total_pages is not None else None,
        notes=_optional_str(parsed.get("notes")),
        confidence=_confidence(parsed.get("confidence"), 0.8),
    )


def parse_verification_response(response_text: str) -> Verdict:
    """Parse a verification reply; never raises.

    Anything undecodable is reported as ``unknown_error``.
    """
    try:
        parsed = extract_json_object(response_text)
    except PerceptionError as e:
        logger.warning(f"Unparseable verification response: {e}")
        return Verdict(
            success=False,
            status=SubmissionStatus.UNKNOWN_ERROR,
            message="Failed to parse verification response",
        )

    status = clamp_status(parsed.get("status"))

    issues = None
    raw_issues = parsed.get("validationErrors")
    if isinstance(raw_issues, list):
        issues = [
            ValidationIssue(
                field=str(item.get("field") or "unknown"),
                error=str(item.get("error") or "unknown error"),
            )
            for item in raw_issues
            if isinstance(item, dict)
        ]

    return Verdict(
        # A success flag is only believed when the status agrees with it.
        success=_flag(parsed.get("success")) and status == SubmissionStatus.SUCCESS,
        status=status,
        message=str(parsed.get("message") or "No message"),
        confirmation_number=_optional_str(parsed.get("confirmationNumber")),
        validation_errors=issues,
    )


def parse_captcha_check(response_text: str) -> CaptchaCheck:
    """Parse a CAPTCHA-only reply; undecodable replies mean no CAPTCHA seen."""
    try:
        parsed = extract_json_object(response_text)
    except PerceptionError as e:
        logger.warning(f"Failed to parse CAPTCHA check response: {e}")
        return CaptchaCheck(has_captcha=False, confidence=0.0)

    has_captcha = _flag(parsed.get("hasCaptcha"))
    return CaptchaCheck(
        has_captcha=has_captcha,
        captcha_type=clamp_captcha_type(parsed.get("captchaType")) if has_captcha else None,
        confidence=_confidence(parsed.get("confidence"), 0.8),
    )
