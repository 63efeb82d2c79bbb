"""Form filling: puts resolved values into the page's controls."""

import logging
import re
from collections.abc import Awaitable, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from form_automation.exceptions import FieldFillError
from form_automation.filling.mapper import infer_data_type, resolve_value
from form_automation.filling.matching import find_best_option_match_any
from form_automation.filling.preprocess import state_aliases
from form_automation.models import (
    ConstituentData,
    DataType,
    FieldType,
    FillResult,
    FormAnalysis,
    FormField,
)

logger = logging.getLogger(__name__)

FALSY_LITERALS = {"false", "0"}

# Short timeout for speculative attempts that have a fallback behind them.
ATTEMPT_TIMEOUT_MS = 2000

ID_SELECTOR = re.compile(r"#[\w-]+")


def css_string(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def is_checked_value(value: str) -> bool:
    """Whether a resolved value means "tick the box"."""
    return bool(value) and value.strip().lower() not in FALSY_LITERALS


def radio_group_selectors(field: FormField) -> list[str]:
    """Selectors matching only the radios of ``field``'s group.

    The field selector may name the group (``[name="topic"]``), a container
    around it, or a single radio by id; the control name scopes the last case.
    Only an id selector with no known name falls back to any radio on the page.
    """
    scopes = [field.selector, f'{field.selector} input[type="radio"]']
    if field.name:
        scopes.append(f'input[type="radio"][name="{css_string(field.name)}"]')
    elif ID_SELECTOR.fullmatch(field.selector):
        scopes.append('input[type="radio"]')
    return scopes


class FormFiller:
    """Fills every perceived field it can resolve a value for.

    Filling is best-effort: a missing value for a required field or a failed
    interaction is recorded and the remaining fields are still filled. The
    caller decides whether the collected errors matter.

    Usage:
        filler = FormFiller()
        result = await filler.fill(page, analysis, preprocess_data(data))
    """

    def __init__(
        self,
        visible_timeout_ms: int = 5000,
        enable_attempts: int = 10,
        enable_interval_ms: int = 300,
    ) -> None:
        self.visible_timeout_ms = visible_timeout_ms
        self.enable_attempts = enable_attempts
        self.enable_interval_ms = enable_interval_ms
        self._handlers: dict[FieldType, Callable[[Page, FormField, str], Awaitable[None]]] = {
            FieldType.TEXT: self._fill_text,
            FieldType.EMAIL: self._fill_text,
            FieldType.TEL: self._fill_text,
            FieldType.TEXTAREA: self._fill_text,
            FieldType.SELECT: self._fill_select,
            FieldType.RADIO: self._fill_radio,
            FieldType.CHECKBOX: self._fill_checkbox,
        }

    async def fill(self, page: Page, analysis: FormAnalysis, data: ConstituentData) -> FillResult:
        """Fill a form page with constituent data.

        Args:
            page: Page holding the form
            analysis: Perceived fields of this page
            data: Pre-processed constituent data

        Returns:
            FillResult with the filled selectors and any errors
        """
        errors: list[str] = []
        filled: dict[str, str] = {}

        for field in analysis.fields:
            if field.type == FieldType.HIDDEN:
                continue

            value = resolve_value(field, data)
            if not value:
                if field.required:
                    errors.append(f"No value found for required field: {field.label or field.selector}")
                continue

            try:
                await self.fill_field(page, field, value)
                filled[field.selector] = value
                logger.debug(f'Filled field "{field.label}" ({infer_data_type(field).value})')
            except Exception as e:
                message = f'Failed to fill field "{field.label or field.selector}": {e}'
                logger.warning(message)
                errors.append(message)

        logger.info(f"Filled {len(filled)}/{len(analysis.fields)} fields ({len(errors)} errors)")
        return FillResult(success=not errors, errors=errors, fields_filled=filled)

    async def fill_field(self, page: Page, field: FormField, value: str) -> None:
        """Fill a single field according to its type."""
        handler = self._handlers.get(field.type)
        if handler is None:
            return

        await page.wait_for_selector(field.selector, state="visible", timeout=self.visible_timeout_ms)
        await self.wait_until_enabled(page, field.selector)
        await handler(page, field, value)

    async def wait_until_enabled(self, page: Page, selector: str) -> bool:
        """Poll until the control is enabled; some sites enable fields from script."""
        locator = page.locator(selector).first
        for _ in range(self.enable_attempts):
            try:
                disabled = await locator.is_disabled()
            except PlaywrightError:
                disabled = False
            if not disabled:
                return True
            await page.wait_for_timeout(self.enable_interval_ms)
        return False

    def option_candidates(self, field: FormField, value: str) -> list[str]:
        """Spellings of ``value`` to try against the field's options."""
        if infer_data_type(field) == DataType.STATE:
            return state_aliases(value)
        return [value]

    async def _fill_text(self, page: Page, field: FormField, value: str) -> None:
        if field.max_length and len(value) > field.max_length:
            logger.info(f'Truncating value for "{field.label}" to {field.max_length} characters')
            value = value[: field.max_length]
        await page.fill(field.selector, value)

    async def _fill_select(self, page: Page, field: FormField, value: str) -> None:
        if not field.options:
            await page.select_option(field.selector, value=value)
            return

        best_match = find_best_option_match_any(self.option_candidates(field, value), field.options)
        if best_match is not None:
            await page.select_option(field.selector, label=best_match)
            return

        try:
            await page.select_option(field.selector, value=value, timeout=ATTEMPT_TIMEOUT_MS)
        except PlaywrightError:
            first_option = next((o for o in field.options if o and o.strip()), None)
            if first_option is None:
                raise FieldFillError(field.label, "no selectable option")
            logger.info(f'No option matched for "{field.label}", using "{first_option}"')
            await page.select_option(field.selector, label=first_option)

    async def _fill_radio(self, page: Page, field: FormField, value: str) -> None:
        if field.options:
            choice = find_best_option_match_any(self.option_candidates(field, value), field.options)
        else:
            choice = value
        if choice is None:
            raise FieldFillError(field.label, f"no option matches {value!r}")

        scopes = radio_group_selectors(field)
        escaped = css_string(choice)
        value_selector = ", ".join(f'{scope}[value="{escaped}"]' for scope in scopes)
        try:
            await page.click(value_selector, timeout=ATTEMPT_TIMEOUT_MS)
        except PlaywrightError:
            # Radios whose value is a code; pick the one labelled with the choice.
            labelled = page.locator(", ".join(scopes)).and_(page.get_by_label(choice))
            await labelled.first.click()

    async def _fill_checkbox(self, page: Page, field: FormField, value: str) -> None:
        if is_checked_value(value):
            await page.check(field.selector)
