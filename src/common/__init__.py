"""Shared helpers: HTTP access with retries and logging utilities."""
