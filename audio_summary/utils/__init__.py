"""Shared helpers: logging, retries, temporary files and input validation."""
