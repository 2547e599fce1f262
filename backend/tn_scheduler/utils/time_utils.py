# backend/tn_scheduler/utils/time_utils.py
"""
Centralized time utilities.

Every instant the engine stores or compares is timezone-aware UTC. Naive
values coming from callers are interpreted in an explicit IANA timezone,
never in the host's local zone.
"""

import re
from datetime import datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

UTC_TIMEZONE = timezone.utc

# Legacy "year/month/day hour:min" form, e.g. "2025/8/15 18:00"
_YMD_HM_PATTERN = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})\s+(\d{1,2}):(\d{2})$")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC_TIMEZONE)


def ensure_utc(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Args:
        value: Aware or naive datetime
        tz_name: Zone a naive value is expressed in (UTC when omitted)
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tz_name) if tz_name else UTC_TIMEZONE)
    return value.astimezone(UTC_TIMEZONE)


def parse_year_month_day_hour_min(value: str) -> datetime:
    """Parse "YYYY/M/D HH:MM" into a naive datetime."""
    match = _YMD_HM_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Invalid date format. Expected format: YYYY/M/D HH:MM")
    year, month, day, hour, minute = (int(part) for part in match.groups())
    return datetime(year, month, day, hour, minute)


def parse_flexible_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse a datetime given as ISO-8601 or "YYYY/M/D HH:MM".

    The legacy form is tried first; ISO-8601 (including a trailing ``Z``) is
    the fallback. The result keeps whatever offset the input carried, so a
    naive input stays naive and must go through :func:`ensure_utc`.

    Raises:
        ValueError: If the value matches neither format
    """
    if isinstance(value, datetime):
        return value
    if not value:
        raise ValueError("Date string is required")

    try:
        return parse_year_month_day_hour_min(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(
            'Invalid date format. Supported formats: "YYYY/M/D HH:MM" or ISO 8601'
        ) from e


def format_year_month_day_hour_min(value: datetime, tz_name: str) -> str:
    """Render an instant as "YYYY/M/D HH:MM" in the given zone."""
    local = ensure_utc(value).astimezone(ZoneInfo(tz_name))
    return f"{local.year}/{local.month}/{local.day} {local.hour:02d}:{local.minute:02d}"
