"""Tests for decoding vision replies."""

import pytest

from form_automation.exceptions import PerceptionError
from form_automation.models import CaptchaType, DataType, FieldType, SubmissionStatus
from form_automation.perception.parsing import (
    clamp_captcha_type,
    clamp_data_type,
    clamp_field_type,
    clamp_status,
    clean_selector,
    extract_json_object,
    parse_analysis_response,
    parse_captcha_check,
    parse_verification_response,
)


class TestExtractJsonObject:
    """Tests for extract_json_object."""

    def test_plain_json(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_markdown_fences(self):
        """Test fenced replies are unwrapped."""
        assert extract_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_prose_around_json(self):
        """Test leading and trailing prose is ignored."""
        text = 'Here is the analysis:\n{"a": {"b": "}"}}\nHope this helps!'
        assert extract_json_object(text) == {"a": {"b": "}"}}

    def test_no_object(self):
        with pytest.raises(PerceptionError):
            extract_json_object("I could not see a form.")

    def test_truncated_json(self):
        """Test a reply cut off mid-object raises PerceptionError."""
        with pytest.raises(PerceptionError) as exc_info:
            extract_json_object('{"fields": [{"selector": "#a"')
        assert exc_info.value.raw_response is not None


class TestClamping:
    """Tests for closed-set clamping."""

    def test_field_type(self):
        assert clamp_field_type("EMAIL") == FieldType.EMAIL
        assert clamp_field_type("date") == FieldType.TEXT
        assert clamp_field_type(None) == FieldType.TEXT

    def test_data_type(self):
        assert clamp_data_type("firstName") == DataType.FIRST_NAME
        assert clamp_data_type("firstname") == DataType.FIRST_NAME
        assert clamp_data_type("birthday") == DataType.OTHER

    def test_captcha_type(self):
        assert clamp_captcha_type("hcaptcha") == CaptchaType.HCAPTCHA
        assert clamp_captcha_type("funcaptcha") is None
        assert clamp_captcha_type(None) is None

    def test_status(self):
        assert clamp_status("validation_error") == SubmissionStatus.VALIDATION_ERROR
        assert clamp_status("great") == SubmissionStatus.UNKNOWN_ERROR

    def test_clean_selector(self):
        """Test the non-CSS :contains() pseudo-class is removed."""
        assert clean_selector('button:contains("Submit")') == "button"
        assert clean_selector(":contains(x)") is None
        assert clean_selector(None) is None


class TestParseAnalysisResponse:
    """Tests for parse_analysis_response."""

    def test_full_reply(self):
        text = """{
            "fields": [
                {"selector": "#first", "type": "text", "label": "First Name", "required": true,
                 "dataType": "firstName"},
                {"selector": "#state", "type": "select", "label": "State",
                 "options": ["Nevada", "Ohio"], "dataType": "state"},
                {"selector": "#msg", "type": "textarea", "label": "Message", "maxLength": 500,
                 "dataType": "message"}
            ],
            "submitButtonSelector": "#submit",
            "hasCaptcha": false,
            "isMultiPage": false,
            "confidence": 0.9
        }"""

        analysis = parse_analysis_response(text)

        assert [f.selector for f in analysis.fields] == ["#first", "#state", "#msg"]
        assert analysis.fields[0].required is True
        assert analysis.fields[1].options == ["Nevada", "Ohio"]
        assert analysis.fields[2].max_length == 500
        assert analysis.submit_button_selector == "#submit"
        assert analysis.confidence == 0.9

    def test_out_of_set_values_are_clamped(self):
        """Test unknown enum values fall back to their defaults."""
        text = """{
            "fields": [{"selector": "#dob", "type": "date", "dataType": "birthday"}],
            "hasCaptcha": true,
            "captchaType": "puzzle"
        }"""

        analysis = parse_analysis_response(text)

        assert analysis.fields[0].type == FieldType.TEXT
        assert analysis.fields[0].data_type == DataType.OTHER
        assert analysis.has_captcha is True
        assert analysis.captcha_type is None

    def test_entries_without_selector_dropped(self):
        text = '{"fields": [{"type": "text"}, "junk", {"selector": "#ok"}]}'

        analysis = parse_analysis_response(text)

        assert [f.selector for f in analysis.fields] == ["#ok"]

    def test_bad_numbers_ignored(self):
        """Test non-numeric and boolean numbers fall back to defaults."""
        text = '{"fields": [], "confidence": "high", "currentPage": true, "totalPages": "3"}'

        analysis = parse_analysis_response(text)

        assert analysis.confidence == 0.8
        assert analysis.current_page == 1
        assert analysis.total_pages is None

    def test_confidence_clamped(self):
        assert parse_analysis_response('{"confidence": 7}').confidence == 1.0

    def test_string_flags(self):
        """Test flags sent as strings are read by their text, not their truthiness."""
        text = """{
            "fields": [{"selector": "#em", "required": "false"}, {"selector": "#msg", "required": "true"}],
            "hasCaptcha": "false",
            "isMultiPage": "no"
        }"""

        analysis = parse_analysis_response(text)

        assert [f.required for f in analysis.fields] == [False, True]
        assert analysis.has_captcha is False
        assert analysis.is_multi_page is False
        assert parse_analysis_response('{"hasCaptcha": "True"}').has_captcha is True

    def test_captcha_type_ignored_without_captcha(self):
        analysis = parse_analysis_response('{"hasCaptcha": false, "captchaType": "recaptcha"}')
        assert analysis.captcha_type is None

    def test_garbage_raises(self):
        with pytest.raises(PerceptionError):
            parse_analysis_response("<html>not json</html>")


class TestParseVerificationResponse:
    """Tests for parse_verification_response."""

    def test_success(self):
        text = '{"success": true, "status": "success", "message": "Thanks", "confirmationNumber": "AB12"}'

        verdict = parse_verification_response(text)

        assert verdict.success is True
        assert verdict.status == SubmissionStatus.SUCCESS
        assert verdict.confirmation_number == "AB12"

    def test_validation_errors(self):
        text = """{"success": false, "status": "validation_error", "message": "Fix it",
                   "validationErrors": [{"field": "Email", "error": "Invalid"}, "junk"]}"""

        verdict = parse_verification_response(text)

        assert verdict.status == SubmissionStatus.VALIDATION_ERROR
        assert [(i.field, i.error) for i in verdict.validation_errors] == [("Email", "Invalid")]

    def test_success_flag_needs_success_status(self):
        """Test a success flag contradicting the status is not believed."""
        verdict = parse_verification_response('{"success": true, "status": "captcha_required"}')

        assert verdict.success is False
        assert verdict.status == SubmissionStatus.CAPTCHA_REQUIRED

    def test_garbage_is_unknown_error(self):
        """Test undecodable replies never raise."""
        verdict = parse_verification_response("Sorry, I can't help with that.")

        assert verdict.success is False
        assert verdict.status == SubmissionStatus.UNKNOWN_ERROR


class TestParseCaptchaCheck:
    """Tests for parse_captcha_check."""

    def test_captcha_found(self):
        check = parse_captcha_check('{"hasCaptcha": true, "captchaType": "recaptcha", "confidence": 0.95}')

        assert check.has_captcha is True
        assert check.captcha_type == CaptchaType.RECAPTCHA
        assert check.confidence == 0.95

    def test_string_false_means_no_captcha(self):
        check = parse_captcha_check('{"hasCaptcha": "false", "captchaType": "recaptcha"}')

        assert check.has_captcha is False
        assert check.captcha_type is None

    def test_garbage_means_no_captcha(self):
        check = parse_captcha_check("???")

        assert check.has_captcha is False
        assert check.confidence == 0.0
