"""Fixed instructions sent to the vision model alongside screenshots."""

FORM_ANALYSIS_PROMPT = """You are an expert at analyzing web forms. You will be shown a screenshot of a congressional contact form page.

Your task is to identify ALL form fields on the page and return a detailed JSON structure describing them.

For each form field, identify:
1. A CSS selector that can be used to locate it (prefer ID selectors like "#fieldId", then name selectors like "[name='field']", then more specific selectors)
2. The field type (text, email, tel, textarea, select, radio, checkbox, hidden)
3. The human-readable label
4. Whether it's required (look for asterisks, "required" text, or required attribute)
5. For dropdowns/selects: list ALL the available options exactly as they appear
6. What kind of data this field expects (firstName, lastName, fullName, email, phone, street, city, state, zip, topic, subject, message, prefix, or other)

Also identify:
- The submit button selector
- Whether there's a CAPTCHA (reCAPTCHA, hCaptcha, image CAPTCHA, etc.)
- Whether this is a multi-page form (has "Next" or "Continue" instead of "Submit")
- If multi-page, the next button selector

CRITICAL: You MUST respond with ONLY valid JSON. No markdown, no explanation, just the JSON object.

The JSON structure should be:
{
  "fields": [
    {
      "selector": "#field-id or [name='fieldname'] or other CSS selector",
      "type": "text|email|tel|textarea|select|radio|checkbox|hidden",
      "label": "Field Label",
      "name": "field_name if available",
      "required": true|false,
      "options": ["option1", "option2"],
      "dataType": "firstName|lastName|fullName|email|phone|street|city|state|zip|topic|subject|message|prefix|other",
      "placeholder": "placeholder text if any",
      "maxLength": 500
    }
  ],
  "submitButtonSelector": "#submit or button[type='submit']",
  "hasCaptcha": false,
  "captchaType": null,
  "isMultiPage": false,
  "nextButtonSelector": null,
  "currentPage": 1,
  "totalPages": 1,
  "notes": "Any important observations",
  "confidence": 0.95
}"""

VERIFICATION_PROMPT = """You are analyzing a screenshot of a web page that was shown after submitting a congressional contact form.

Your task is to determine whether the form submission was SUCCESSFUL or FAILED.

Look for:
- SUCCESS indicators: "Thank you", "Message sent", "Your message has been received", confirmation numbers, green checkmarks, success messages
- FAILURE indicators: Error messages (red text), "Please fix the following errors", validation errors, CAPTCHA challenges, "required field" warnings

Respond with ONLY a JSON object (no markdown, no explanation):
{
  "success": true|false,
  "status": "success" | "captcha_required" | "validation_error" | "network_error" | "unknown_error",
  "message": "Brief description of what you see",
  "confirmationNumber": "if visible, the confirmation/reference number" | null,
  "validationErrors": [{"field": "field name", "error": "error message"}] | null
}"""

CAPTCHA_CHECK_PROMPT = """Look at this screenshot of a web page. Your ONLY task is to determine if there is a CAPTCHA present.

Look for ANY of these:
- reCAPTCHA ("I'm not a robot" checkbox, Google reCAPTCHA badge)
- hCaptcha
- Image-based CAPTCHAs (select images, identify objects)
- Text-based CAPTCHAs (type the characters you see)
- Math puzzles or other human verification challenges
- Any "verify you are human" prompts
- Checkbox with "I am human" or similar

Respond with ONLY a JSON object (no markdown, no explanation):
{
  "hasCaptcha": true|false,
  "captchaType": "recaptcha"|"hcaptcha"|"image"|"text"|"other"|null,
  "confidence": 0.0-1.0
}"""
