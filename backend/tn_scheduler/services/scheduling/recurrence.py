# backend/tn_scheduler/services/scheduling/recurrence.py
"""
Recurrence calculator.

Daily and weekly steps are fixed durations. Monthly and yearly steps move
the calendar field in the definition's timezone and clamp the day to the
last valid day of the target month (Jan 31 + 1 month = Feb 28/29).
"""

import calendar
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from ...constants import DEFAULT_TIMEZONE
from ...enums import RecurrenceInterval
from ...models.schedule_definition_model import RecurrenceSettings
from ...utils.time_utils import UTC_TIMEZONE, ensure_utc


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole calendar months, clamping the day."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(
    last_trigger_instant: datetime,
    recurrence: RecurrenceSettings,
    tz_name: str = DEFAULT_TIMEZONE,
) -> Optional[datetime]:
    """
    Compute the occurrence following ``last_trigger_instant``.

    Args:
        last_trigger_instant: Intended fire time of the occurrence that just ran
        recurrence: Interval and stop conditions
        tz_name: Zone in which calendar months and years are counted

    Returns:
        Next instant in UTC, or None when the recurrence has run out
    """
    if (
        recurrence.max_occurrences is not None
        and recurrence.current_occurrence >= recurrence.max_occurrences
    ):
        return None

    last = ensure_utc(last_trigger_instant)
    interval = recurrence.interval

    if interval == RecurrenceInterval.DAILY:
        candidate = last + timedelta(days=1)
    elif interval == RecurrenceInterval.WEEKLY:
        candidate = last + timedelta(weeks=1)
    else:
        local = last.astimezone(ZoneInfo(tz_name))
        months = 1 if interval == RecurrenceInterval.MONTHLY else 12
        # Wall-clock time is kept; the offset is re-resolved for the new date
        shifted = add_months(local.replace(tzinfo=None), months)
        candidate = shifted.replace(tzinfo=ZoneInfo(tz_name)).astimezone(UTC_TIMEZONE)

    if recurrence.end_date is not None and candidate > ensure_utc(recurrence.end_date):
        return None
    return candidate
