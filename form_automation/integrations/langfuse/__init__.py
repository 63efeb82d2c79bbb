"""Langfuse observability integration."""
