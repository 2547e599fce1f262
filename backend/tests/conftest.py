#!/usr/bin/env python3
# backend/tests/conftest.py
"""
Pytest configuration and shared fixtures for scheduling engine tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Sequence
from unittest.mock import AsyncMock

import pytest

from tn_scheduler.config import Settings
from tn_scheduler.database import (
    ExecutionResultOperations,
    JsonArrayFile,
    ScheduleDefinitionOperations,
    WeatherSnapshotOperations,
)
from tn_scheduler.models.scheduler_responses import DispatchResult
from tn_scheduler.services.scheduling.job_registry import JobRegistry
from tn_scheduler.services.scheduling.scheduler_service import DefinitionScheduler
from tn_scheduler.services.scheduling.triggers import CronExpression

FROZEN_NOW = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeTimer:
    """In-memory stand-in for a scheduled APScheduler job."""

    def __init__(
        self,
        timer_id: str,
        func: Callable,
        args: Sequence[Any],
        next_fire_time: Optional[datetime],
        expression: Optional[str] = None,
    ):
        self.timer_id = timer_id
        self.func = func
        self.args = tuple(args)
        self._next_fire_time = next_fire_time
        self.expression = expression
        self.cancelled = False
        self.cancel_calls = 0

    @property
    def next_fire_time(self) -> Optional[datetime]:
        return None if self.cancelled else self._next_fire_time

    def cancel(self) -> None:
        self.cancel_calls += 1
        self.cancelled = True

    async def fire(self):
        return await self.func(*self.args)


class FakeTimerFactory:
    """Records every timer the scheduler asks for instead of starting one."""

    def __init__(self, clock: FrozenClock):
        self.clock = clock
        self.timers: List[FakeTimer] = []

    def schedule_date_job(self, timer_id, run_at, func, args=()):
        timer = FakeTimer(timer_id, func, args, run_at)
        self.timers.append(timer)
        return timer

    def schedule_cron_job(self, timer_id, expression, timezone, func, args=()):
        next_time = CronExpression(expression, timezone).next_fire_time(self.clock())
        timer = FakeTimer(timer_id, func, args, next_time, expression=expression)
        self.timers.append(timer)
        return timer

    @property
    def live_timers(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]


@pytest.fixture
def frozen_clock():
    """Clock pinned to 2025-01-06 09:00 UTC."""
    return FrozenClock()


@pytest.fixture
def fake_timer_factory(frozen_clock):
    return FakeTimerFactory(frozen_clock)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from any .env file and pointed at tmp_path."""
    return Settings(
        _env_file=None,
        data_directory=str(tmp_path),
        timezone="UTC",
        webhook_url="https://hooks.example.com/reminder",
        completion_api_key="test-key",
    )


@pytest.fixture
def definition_store(tmp_path):
    return JsonArrayFile(tmp_path / "schedule_definitions.json")


@pytest.fixture
def definition_ops(definition_store):
    return ScheduleDefinitionOperations(definition_store)


@pytest.fixture
def result_ops(tmp_path):
    return ExecutionResultOperations(JsonArrayFile(tmp_path / "execution_results.json"))


@pytest.fixture
def snapshot_ops(tmp_path):
    return WeatherSnapshotOperations(JsonArrayFile(tmp_path / "weather_snapshots.json"))


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
def mock_dispatcher():
    """Dispatcher double whose dispatch succeeds unless reconfigured."""
    dispatcher = AsyncMock()
    dispatcher.dispatch = AsyncMock(return_value=DispatchResult.ok())
    return dispatcher


@pytest.fixture
def definition_scheduler(definition_ops, registry, fake_timer_factory, mock_dispatcher, frozen_clock):
    return DefinitionScheduler(
        definition_ops, registry, fake_timer_factory, mock_dispatcher, clock=frozen_clock
    )


@pytest.fixture
def reminder_data():
    """Create payload for a webhook reminder one hour after the frozen clock."""
    return {
        "kind": "one_shot_with_recurrence",
        "name": "Stand-up",
        "trigger": {
            "type": "fixed_instant",
            "fire_at": (FROZEN_NOW + timedelta(hours=1)).isoformat(),
        },
        "payload": {
            "type": "notification",
            "title": "Daily stand-up",
            "message": "Join the call",
            "channel": "webhook",
        },
        "timezone": "UTC",
    }


@pytest.fixture
def cron_prompt_data():
    """Create payload for a prompt run twice a day, in the legacy array form."""
    return {
        "kind": "cron_recurring",
        "name": "Morning and evening summary",
        "trigger": '["0 9 * * *", "0 18 * * *"]',
        "payload": {"type": "prompt", "prompt": "Summarize the news", "category": "news"},
        "timezone": "UTC",
    }
