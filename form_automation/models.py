"""Shared models for contact form automation.

Forms differ on every office site, so a form is modelled as an ordered list
of typed field descriptors rather than a fixed record. The enumerations below
are closed sets: values coming back from inference are clamped onto them
before they ever reach a model (see ``perception.parsing``).
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from form_automation.config import Settings, get_settings


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# Closed sets
# ============================================================================


class FieldType(str, Enum):
    """Kind of form control."""

    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    HIDDEN = "hidden"


class DataType(str, Enum):
    """Semantic kind of data a field expects."""

    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    FULL_NAME = "fullName"
    EMAIL = "email"
    PHONE = "phone"
    STREET = "street"
    CITY = "city"
    STATE = "state"
    ZIP = "zip"
    TOPIC = "topic"
    SUBJECT = "subject"
    MESSAGE = "message"
    PREFIX = "prefix"
    OTHER = "other"


class CaptchaType(str, Enum):
    """Kind of CAPTCHA challenge."""

    RECAPTCHA = "recaptcha"
    HCAPTCHA = "hcaptcha"
    IMAGE = "image"
    TEXT = "text"
    OTHER = "other"


class SubmissionStatus(str, Enum):
    """Terminal outcome of one automation run."""

    SUCCESS = "success"
    CAPTCHA_REQUIRED = "captcha_required"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN_ERROR = "unknown_error"


class ErrorType(str, Enum):
    """Error kind for programmatic handling of failed runs."""

    CAPTCHA = "captcha"
    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


STATUS_ERROR_TYPES: dict[SubmissionStatus, ErrorType | None] = {
    SubmissionStatus.SUCCESS: None,
    SubmissionStatus.CAPTCHA_REQUIRED: ErrorType.CAPTCHA,
    SubmissionStatus.VALIDATION_ERROR: ErrorType.VALIDATION,
    SubmissionStatus.NETWORK_ERROR: ErrorType.NETWORK,
    SubmissionStatus.UNKNOWN_ERROR: ErrorType.UNKNOWN,
}


# ============================================================================
# Input
# ============================================================================


class ConstituentData(BaseModel):
    """Constituent data to fill into forms.

    Frozen: pre-processing produces a derived copy instead of mutating it.
    """

    model_config = ConfigDict(frozen=True)

    prefix: str | None = None  # Mr., Mrs., Ms., Dr., ...
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    street: str
    city: str
    state: str  # 2-letter code or full name
    zip: str
    topic: str
    subject: str
    message: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ============================================================================
# Perception
# ============================================================================


class FormField(BaseModel):
    """A single form control discovered on a page."""

    selector: str
    type: FieldType = FieldType.TEXT
    label: str = ""
    name: str | None = None
    required: bool = False
    options: list[str] | None = None
    data_type: DataType = DataType.OTHER
    placeholder: str | None = None
    max_length: int | None = None

    @field_validator("selector")
    @classmethod
    def selector_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("selector must not be empty")
        return value


class FormAnalysis(BaseModel):
    """Perceived state of one form page. Built per page, never persisted."""

    fields: list[FormField] = Field(default_factory=list)
    submit_button_selector: str = 'button[type="submit"]'
    has_captcha: bool = False
    captcha_type: CaptchaType | None = None
    is_multi_page: bool = False
    next_button_selector: str | None = None
    current_page: int = 1
    total_pages: int | None = None
    notes: str | None = None
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class CaptchaCheck(BaseModel):
    """Result of the lightweight CAPTCHA-only perception."""

    has_captcha: bool = False
    captcha_type: CaptchaType | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


# ============================================================================
# Filling / submission
# ============================================================================


class FillResult(BaseModel):
    """Result of filling one page."""

    success: bool
    errors: list[str] = Field(default_factory=list)
    fields_filled: dict[str, str] = Field(default_factory=dict)  # selector -> value


class ValidationIssue(BaseModel):
    """A field-level validation error reported by the target site."""

    field: str
    error: str


class Verdict(BaseModel):
    """Classification of a post-submit page."""

    success: bool
    status: SubmissionStatus
    message: str
    confirmation_number: str | None = None
    validation_errors: list[ValidationIssue] | None = None


class SubmissionResult(BaseModel):
    """Terminal verdict for one run. The only artifact handed to callers."""

    success: bool
    status: SubmissionStatus
    error_type: ErrorType | None = None
    message: str
    confirmation_number: str | None = None
    validation_errors: list[ValidationIssue] | None = None
    time_taken_ms: int = 0
    pages_filled: int = 0
    representative_id: str | None = None
    form_url: str | None = None
    fill_errors: list[str] = Field(default_factory=list)
    screenshot_base64: str | None = Field(default=None, repr=False)

    @property
    def requires_fallback(self) -> bool:
        """Whether the caller should offer a non-automated channel instead."""
        return not self.success

    @classmethod
    def from_verdict(cls, verdict: Verdict, **kwargs) -> "SubmissionResult":
        return cls(
            success=verdict.success,
            status=verdict.status,
            error_type=STATUS_ERROR_TYPES[verdict.status],
            message=verdict.message,
            confirmation_number=verdict.confirmation_number,
            validation_errors=verdict.validation_errors,
            **kwargs,
        )


# ============================================================================
# Directory / audit
# ============================================================================


class RepresentativeInfo(BaseModel):
    """Representative info for form lookup."""

    bioguide_id: str
    name: str
    contact_form_url: str
    website: str | None = None


class CaptchaLogEntry(BaseModel):
    """A representative whose form was found behind a CAPTCHA."""

    bioguide_id: str
    name: str
    form_url: str
    captcha_type: CaptchaType | None = None
    page: int = 1


class AuditRecord(BaseModel):
    """CAPTCHA audit result for a single representative."""

    bioguide_id: str
    name: str
    form_url: str
    has_captcha: bool = False
    captcha_type: CaptchaType | None = None
    confidence: float = 0.0
    dom_captcha_hint: str | None = None
    loaded_successfully: bool = False
    error: str | None = None
    audited_at: str = Field(default_factory=utc_now_iso)


class AuditSummary(BaseModel):
    """Summary of CAPTCHA audit results."""

    total: int = 0
    with_captcha: int = 0
    without_captcha: int = 0
    failed_to_load: int = 0
    audited_at: str = Field(default_factory=utc_now_iso)
    results: list[AuditRecord] = Field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[AuditRecord]) -> "AuditSummary":
        loaded = [r for r in records if r.loaded_successfully]
        return cls(
            total=len(records),
            with_captcha=sum(1 for r in loaded if r.has_captcha),
            without_captcha=sum(1 for r in loaded if not r.has_captcha),
            failed_to_load=len(records) - len(loaded),
            results=list(records),
        )


# ============================================================================
# Per-call configuration
# ============================================================================


class BrowserOptions(BaseModel):
    """Browser configuration options."""

    headless: bool = True
    slow_mo: int = Field(default=0, ge=0, le=1000, description="Slow motion delay in ms")
    timeout: int = Field(default=30000, ge=1000, le=120000, description="Default timeout in ms")
    max_contexts: int = Field(default=4, ge=1, le=32)


class AnalyzerConfig(BaseModel):
    """Configuration for the vision inference service."""

    api_key: str | None = None
    model: str | None = None
    max_tokens: int = 4096
    timeout: float = 120.0


class AutomationConfig(BaseModel):
    """Configuration for one automation entry point."""

    browser: BrowserOptions = Field(default_factory=BrowserOptions)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    submit: bool = True
    debug_dir: Path | None = None
    max_pages: int = Field(default=10, ge=1, le=50)
    verify_with_vision_always: bool = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides) -> "AutomationConfig":
        """Build a config from environment settings, applying keyword overrides."""
        settings = settings or get_settings()
        config = cls(
            browser=BrowserOptions(
                headless=settings.playwright_headless,
                slow_mo=settings.playwright_slow_mo,
                timeout=settings.browser_timeout,
                max_contexts=settings.max_contexts,
            ),
            analyzer=AnalyzerConfig(
                api_key=settings.anthropic_api_key,
                model=settings.model_id,
                max_tokens=settings.anthropic_max_tokens,
                timeout=settings.anthropic_timeout,
            ),
            submit=settings.submit_forms,
            debug_dir=Path(settings.debug_dir) if settings.debug_dir else None,
            max_pages=settings.max_form_pages,
            verify_with_vision_always=settings.verify_with_vision_always,
        )
        return cls.model_validate({**config.model_dump(), **overrides})
