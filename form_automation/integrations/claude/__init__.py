"""Claude vision integration."""

from form_automation.integrations.claude.client import ClaudeClient, VisionClient, get_claude_client

__all__ = ["ClaudeClient", "VisionClient", "get_claude_client"]
