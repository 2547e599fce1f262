from .time_utils import (
    UTC_TIMEZONE,
    ensure_utc,
    format_year_month_day_hour_min,
    parse_flexible_datetime,
    utc_now,
)

__all__ = [
    "UTC_TIMEZONE",
    "ensure_utc",
    "format_year_month_day_hour_min",
    "parse_flexible_datetime",
    "utc_now",
]
