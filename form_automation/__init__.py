"""Vision-driven automation of constituent contact forms.

Usage:
    from form_automation import ConstituentData, submit_to_representative

    result = await submit_to_representative("S000033", data)
"""

from form_automation.audit import run_audit
from form_automation.models import (
    AuditSummary,
    AutomationConfig,
    ConstituentData,
    FormAnalysis,
    SubmissionResult,
    SubmissionStatus,
)
from form_automation.orchestrator import FormAutomation, analyze_form_only, submit_to_representative

__version__ = "0.1.0"

__all__ = [
    "AuditSummary",
    "AutomationConfig",
    "ConstituentData",
    "FormAnalysis",
    "FormAutomation",
    "SubmissionResult",
    "SubmissionStatus",
    "analyze_form_only",
    "run_audit",
    "submit_to_representative",
]
