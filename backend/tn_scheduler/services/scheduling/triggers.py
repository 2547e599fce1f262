# backend/tn_scheduler/services/scheduling/triggers.py
"""
Trigger value types.

A trigger answers one question: given an instant, when is the next firing
strictly after it? ``None`` means never.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Protocol

from ...constants import DEFAULT_TIMEZONE
from ...exceptions import ValidationError
from ...models.schedule_definition_model import (
    CronTriggerSpec,
    FixedInstantTrigger,
    TriggerSpec,
)
from ...utils.cron_utils import build_cron_trigger, validate_cron_expression
from ...utils.time_utils import UTC_TIMEZONE, ensure_utc


class Trigger(Protocol):
    def next_fire_time(self, from_time: datetime) -> Optional[datetime]: ...


class FixedInstant:
    """Fires once, at ``instant``."""

    def __init__(self, instant: datetime):
        self.instant = ensure_utc(instant)

    def next_fire_time(self, from_time: datetime) -> Optional[datetime]:
        if self.instant > ensure_utc(from_time):
            return self.instant
        return None

    def __repr__(self) -> str:
        return f"FixedInstant({self.instant.isoformat()})"


class CronExpression:
    """
    Fires on every match of a 5-field crontab expression, evaluated in
    ``timezone``.

    Raises:
        ValidationError: At construction, for a malformed expression
    """

    def __init__(self, expression: str, timezone: str = DEFAULT_TIMEZONE):
        try:
            self.expression = validate_cron_expression(expression)
            self._trigger = build_cron_trigger(self.expression, timezone)
        except ValueError as e:
            raise ValidationError(f"Invalid cron expression '{expression}': {e}") from e
        self.timezone = timezone

    def next_fire_time(self, from_time: datetime) -> Optional[datetime]:
        # APScheduler returns matches at or after ``now``; nudge past from_time
        start = ensure_utc(from_time) + timedelta(microseconds=1)
        next_time = self._trigger.get_next_fire_time(None, start)
        if next_time is None:
            return None
        return next_time.astimezone(UTC_TIMEZONE)

    def __repr__(self) -> str:
        return f"CronExpression({self.expression!r}, {self.timezone!r})"


def build_triggers(spec: TriggerSpec, timezone: str = DEFAULT_TIMEZONE) -> List[Trigger]:
    """Expand a persisted trigger spec into one trigger per timer."""
    if isinstance(spec, FixedInstantTrigger):
        return [FixedInstant(spec.fire_at)]
    if isinstance(spec, CronTriggerSpec):
        return [CronExpression(expr, timezone) for expr in spec.expressions]
    raise ValidationError(f"Unsupported trigger spec: {spec!r}")
