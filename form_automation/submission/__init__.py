"""Submission Controller: button location, submit and post-submit verification."""

from form_automation.submission.buttons import (
    NEXT_BUTTON_STRATEGIES,
    SUBMIT_BUTTON_STRATEGIES,
    locate_button,
)
from form_automation.submission.submitter import SubmissionController
from form_automation.submission.verifier import SubmissionVerifier

__all__ = [
    "NEXT_BUTTON_STRATEGIES",
    "SUBMIT_BUTTON_STRATEGIES",
    "SubmissionController",
    "SubmissionVerifier",
    "locate_button",
]
