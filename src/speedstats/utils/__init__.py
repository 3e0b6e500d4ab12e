"""Shared helpers: logging setup, timezone resolution, date labels."""
