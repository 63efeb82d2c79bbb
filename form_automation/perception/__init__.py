"""Field Perception: screenshot -> structured form analysis."""

from form_automation.perception.analyzer import FieldPerception
from form_automation.perception.detector import CaptchaDetector, DetectedCaptcha

__all__ = ["CaptchaDetector", "DetectedCaptcha", "FieldPerception"]
