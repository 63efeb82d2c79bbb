"""Batch CAPTCHA audit of contact forms."""

from form_automation.audit.auditor import CaptchaAuditor, run_audit
from form_automation.audit.store import AuditStore

__all__ = ["AuditStore", "CaptchaAuditor", "run_audit"]
