"""Browser Driver: Playwright process, contexts and pages."""

from form_automation.browser.driver import USER_AGENTS, BrowserDriver

__all__ = ["BrowserDriver", "USER_AGENTS"]
