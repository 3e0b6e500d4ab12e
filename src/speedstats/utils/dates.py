"""Bucket keys and display labels for study timestamps."""

from datetime import datetime


def date_key(ts: datetime) -> str:
    """``YYYY-MM-DD`` grouping key."""
    return ts.strftime("%Y-%m-%d")


def hour_key(ts: datetime) -> str:
    """``YYYY-MM-DD-HH`` grouping key."""
    return ts.strftime("%Y-%m-%d-%H")


def format_hour(hour: int) -> str:
    """Format an hour of day (0-23) as ``12 AM``, ``1 AM``, ..., ``11 PM``."""
    if hour == 0:
        return "12 AM"
    if hour == 12:
        return "12 PM"
    if hour < 12:
        return f"{hour} AM"
    return f"{hour - 12} PM"


def chart_date_label(ts: datetime) -> str:
    """Short chart label without zero padding, e.g. ``6/1``."""
    return f"{ts.month}/{ts.day}"


def chart_hour_label(ts: datetime) -> str:
    """Chart label for a calendar hour, e.g. ``6/1 3 PM``."""
    return f"{chart_date_label(ts)} {format_hour(ts.hour)}"
