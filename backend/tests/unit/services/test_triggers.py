#!/usr/bin/env python3
# backend/tests/unit/services/test_triggers.py
"""Tests for trigger value types."""

from datetime import datetime, timedelta, timezone

import pytest

from tn_scheduler.exceptions import ValidationError
from tn_scheduler.models.schedule_definition_model import (
    CronTriggerSpec,
    FixedInstantTrigger,
)
from tn_scheduler.services.scheduling.triggers import (
    CronExpression,
    FixedInstant,
    build_triggers,
)

NOW = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)  # a Monday


class TestFixedInstant:
    def test_future_instant_is_returned(self):
        target = NOW + timedelta(hours=1)
        assert FixedInstant(target).next_fire_time(NOW) == target

    def test_past_instant_never_fires(self):
        assert FixedInstant(NOW - timedelta(seconds=1)).next_fire_time(NOW) is None

    def test_instant_equal_to_now_is_already_due(self):
        assert FixedInstant(NOW).next_fire_time(NOW) is None


class TestCronExpression:
    def test_next_match_is_strictly_after_from(self):
        cron = CronExpression("0 9 * * *", "UTC")
        assert cron.next_fire_time(NOW) == datetime(2025, 1, 7, 9, 0, tzinfo=timezone.utc)

    def test_next_match_same_day(self):
        cron = CronExpression("0 18 * * *", "UTC")
        assert cron.next_fire_time(NOW) == datetime(2025, 1, 6, 18, 0, tzinfo=timezone.utc)

    def test_crontab_weekday_numbering(self):
        # 1 is Monday in crontab; NOW is Monday 09:00 so the next one is a week later
        cron = CronExpression("0 9 * * 1", "UTC")
        assert cron.next_fire_time(NOW) == datetime(2025, 1, 13, 9, 0, tzinfo=timezone.utc)

    def test_sunday_as_zero(self):
        cron = CronExpression("0 9 * * 0", "UTC")
        assert cron.next_fire_time(NOW) == datetime(2025, 1, 12, 9, 0, tzinfo=timezone.utc)

    def test_day_of_month_or_day_of_week(self):
        # Both day fields restricted: the 1st of the month or any Monday
        cron = CronExpression("0 9 1 * 1", "UTC")
        tuesday = datetime(2025, 1, 28, 10, 0, tzinfo=timezone.utc)
        first = cron.next_fire_time(tuesday)
        assert first == datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc)  # a Saturday
        assert cron.next_fire_time(first) == datetime(2025, 2, 3, 9, 0, tzinfo=timezone.utc)

    def test_evaluated_in_timezone(self):
        cron = CronExpression("0 9 * * *", "Asia/Tokyo")
        # 09:00 JST is 00:00 UTC
        assert cron.next_fire_time(NOW) == datetime(2025, 1, 7, 0, 0, tzinfo=timezone.utc)

    def test_result_is_utc(self):
        cron = CronExpression("*/15 * * * *", "Asia/Tokyo")
        assert cron.next_fire_time(NOW).tzinfo == timezone.utc

    @pytest.mark.parametrize("expression", ["0 9 * *", "0 9 * * * *", "99 9 * * *"])
    def test_malformed_rejected_at_construction(self, expression):
        with pytest.raises(ValidationError):
            CronExpression(expression)


class TestBuildTriggers:
    def test_fixed_instant_spec(self):
        triggers = build_triggers(FixedInstantTrigger(fire_at=NOW))
        assert len(triggers) == 1
        assert isinstance(triggers[0], FixedInstant)

    def test_one_trigger_per_cron_expression(self):
        spec = CronTriggerSpec(expressions=["0 9 * * *", "0 18 * * *"])
        triggers = build_triggers(spec, "UTC")
        assert [t.expression for t in triggers] == ["0 9 * * *", "0 18 * * *"]
