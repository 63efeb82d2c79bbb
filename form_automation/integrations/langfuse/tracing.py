"""Langfuse tracing configuration."""

import logging
from functools import lru_cache

from langfuse import Langfuse

from form_automation.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_langfuse() -> Langfuse | None:
    """
    Get Langfuse client instance.

    Returns:
        Langfuse client if configured, None otherwise.
    """
    settings = get_settings()
    if not settings.langfuse_secret_key or not settings.langfuse_public_key:
        return None

    return Langfuse(
        secret_key=settings.langfuse_secret_key,
        public_key=settings.langfuse_public_key,
        host=settings.langfuse_base_url,
    )


def init_langfuse() -> None:
    """Initialize Langfuse for a CLI run."""
    client = get_langfuse()
    if client:
        try:
            client.auth_check()
        except Exception as e:
            logger.warning(f"Langfuse auth check failed: {e}")


def flush_langfuse() -> None:
    """Flush pending Langfuse traces and shut the client down."""
    client = get_langfuse()
    if client:
        client.flush()
        client.shutdown()
