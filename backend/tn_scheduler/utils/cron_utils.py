# backend/tn_scheduler/utils/cron_utils.py
"""Cron expression helpers shared by the models and the trigger layer."""

import json
from typing import List, Optional, Union

from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger

from ..constants import CRON_FIELD_COUNT

# Crontab weekday numbering, index 0 and 7 are both Sunday
_CRON_WEEKDAYS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


def validate_cron_expression(expression: str) -> str:
    """
    Check a 5-field crontab expression (minute hour day month day-of-week).

    Returns:
        The expression with surrounding whitespace collapsed

    Raises:
        ValueError: Wrong field count or a field APScheduler cannot parse
    """
    if not isinstance(expression, str):
        raise ValueError(f"Cron expression must be a string, got {type(expression).__name__}")
    fields = expression.split()
    if len(fields) != CRON_FIELD_COUNT:
        raise ValueError(
            f"Cron expression '{expression}' must have exactly "
            f"{CRON_FIELD_COUNT} fields, got {len(fields)}"
        )
    normalized = " ".join(fields)
    build_cron_trigger(normalized)
    return normalized


def build_cron_trigger(
    expression: str, timezone: Optional[str] = None
) -> Union[CronTrigger, OrTrigger]:
    """
    Build an APScheduler trigger; raises ValueError on bad field values.

    Crontab fires when either day-of-month or day-of-week matches if both
    are restricted (``0 9 1 * 1`` is the 1st plus every Monday), while a
    single CronTrigger requires both. That case becomes an OrTrigger of a
    day-of-month trigger and a day-of-week trigger.
    """
    minute, hour, day, month, day_of_week = expression.split()
    tz = timezone or "UTC"
    if not day.startswith("*") and not day_of_week.startswith("*"):
        return OrTrigger(
            [
                CronTrigger(minute=minute, hour=hour, day=day, month=month, timezone=tz),
                CronTrigger(
                    minute=minute,
                    hour=hour,
                    month=month,
                    day_of_week=translate_day_of_week(day_of_week),
                    timezone=tz,
                ),
            ]
        )
    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=translate_day_of_week(day_of_week),
        timezone=tz,
    )


def translate_day_of_week(field: str) -> str:
    """
    Rewrite a crontab day-of-week field (0/7 = Sunday) into weekday names.

    APScheduler numbers weekdays from Monday, so numeric crontab values are
    expanded to explicit names; ``*`` and named values pass through.
    """
    if field == "*" or field.isalpha():
        return field

    names: List[str] = []
    for item in field.split(","):
        if any(ch.isalpha() for ch in item):
            names.append(item)
            continue
        base, _, step_text = item.partition("/")
        step = int(step_text) if step_text else 1
        if step < 1:
            raise ValueError(f"Invalid step in day-of-week field '{field}'")
        if base == "*":
            first, last = 0, 6
        elif "-" in base:
            first_text, last_text = base.split("-", 1)
            first, last = int(first_text), int(last_text)
        else:
            first = last = int(base)
            if step_text:
                last = 6
        if not (0 <= first <= 7 and 0 <= last <= 7) or first > last:
            raise ValueError(f"Invalid day-of-week range in '{field}'")
        for number in range(first, last + 1, step):
            name = _CRON_WEEKDAYS[number % 7]
            if name not in names:
                names.append(name)
    return ",".join(names)


def split_cron_value(value: Union[str, List[str]]) -> List[str]:
    """
    Normalize a persisted cron value into a list of expressions.

    Older records store either one expression or a JSON array encoded as a
    string (``'["0 9 * * *", "0 18 * * *"]'``).
    """
    if isinstance(value, list):
        return list(value)
    if not isinstance(value, str):
        raise ValueError("Cron value must be a string or a list of strings")

    stripped = value.strip()
    if stripped.startswith("["):
        try:
            decoded = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid cron array: {e}") from e
        if not isinstance(decoded, list):
            raise ValueError("Cron array must decode to a list")
        return decoded
    return [stripped]
