"""Exception hierarchy for contact form automation."""


class FormAutomationError(Exception):
    """Base class for all form automation errors."""


class NavigationError(FormAutomationError):
    """Raised when a target page cannot be loaded (DNS, TLS, HTTP, timeout)."""

    def __init__(self, url: str, reason: str, timed_out: bool = False):
        self.url = url
        self.reason = reason
        self.timed_out = timed_out
        super().__init__(f"Failed to load {url}: {reason}")


class InferenceError(FormAutomationError):
    """Raised when the vision inference service call itself fails."""


class PerceptionError(FormAutomationError):
    """Raised when an inference response cannot be decoded into JSON."""

    def __init__(self, message: str, raw_response: str | None = None):
        self.raw_response = raw_response
        super().__init__(message)


class ButtonNotFoundError(FormAutomationError):
    """Raised when no selector strategy locates a visible button."""

    def __init__(self, kind: str, tried: list[str]):
        self.kind = kind
        self.tried = tried
        super().__init__(f"Could not find {kind} button with any strategy ({len(tried)} tried)")


class RepresentativeNotFoundError(FormAutomationError):
    """Raised when a representative identifier has no known contact form."""

    def __init__(self, bioguide_id: str):
        self.bioguide_id = bioguide_id
        super().__init__(f"Could not find representative with bioguide ID: {bioguide_id}")


class FieldFillError(FormAutomationError):
    """Raised when a resolved value cannot be put into a control."""

    def __init__(self, label: str, reason: str):
        self.label = label
        self.reason = reason
        super().__init__(f'Failed to fill field "{label}": {reason}')
