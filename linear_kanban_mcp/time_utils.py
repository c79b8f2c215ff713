"""
Time utilities for the Linear Kanban MCP server.

Linear reports timestamps as ISO-8601 strings with a trailing 'Z' and
milestone target dates as plain calendar dates.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time.

    Returns:
        timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def date_in_days(days: int) -> str:
    """
    Calendar date `days` from now, formatted the way Linear expects target dates.

    Args:
        days: Number of days ahead

    Returns:
        ISO date string, e.g. '2024-12-31'
    """
    return (utc_now() + timedelta(days=days)).date().isoformat()


def parse_timestamp(value: Optional[str]) -> datetime:
    """
    Parse a Linear timestamp into a timezone-aware datetime.

    Missing values sort first: they map to the minimum aware datetime.
    """
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
