#!/usr/bin/env python3
# backend/tests/unit/services/test_scheduler_service.py
"""
Tests for DefinitionScheduler: scheduling rules, firing behaviour and
recurrence handling, driven through fake timers and a frozen clock.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from tn_scheduler.enums import DefinitionStatus
from tn_scheduler.models.schedule_definition_model import ScheduleDefinitionCreate
from tn_scheduler.models.scheduler_responses import DispatchResult
from tn_scheduler.services.notification_service import NotificationService
from tn_scheduler.services.scheduling.definition_service import DefinitionService
from tn_scheduler.services.scheduling.dispatcher import Dispatcher
from tn_scheduler.services.scheduling.scheduler_service import DefinitionScheduler

FROZEN_NOW = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def create(definition_ops, data, **overrides):
    return definition_ops.create(ScheduleDefinitionCreate.model_validate({**data, **overrides}))


class TestScheduleOneShot:
    def test_future_one_shot_installs_one_timer(
        self, definition_scheduler, definition_ops, registry, fake_timer_factory, reminder_data
    ):
        definition = create(definition_ops, reminder_data)

        assert definition_scheduler.schedule(definition) == 1
        handles = registry.get(definition.id)
        assert len(handles) == 1
        assert handles[0].timer_id == f"reminder_{definition.id}"
        assert handles[0].next_fire_time == definition.trigger.fire_at

    @pytest.mark.parametrize("offset", [timedelta(0), timedelta(minutes=-5), timedelta(days=-30)])
    def test_due_or_past_one_shot_is_not_installed(
        self, definition_scheduler, definition_ops, registry, fake_timer_factory,
        frozen_clock, reminder_data, offset
    ):
        data = dict(reminder_data)
        data["trigger"] = {"type": "fixed_instant", "fire_at": (frozen_clock() + offset).isoformat()}
        definition = create(definition_ops, data)

        assert definition_scheduler.schedule(definition) == 0
        assert registry.list() == []
        assert fake_timer_factory.timers == []

    def test_sent_one_shot_is_not_installed(
        self, definition_scheduler, definition_ops, registry, reminder_data
    ):
        definition = create(definition_ops, reminder_data)
        sent = definition_ops.update(definition.id, {"status": "sent"})

        assert definition_scheduler.schedule(sent) == 0
        assert registry.list() == []

    def test_reschedule_replaces_the_timer(
        self, definition_scheduler, definition_ops, registry, fake_timer_factory, reminder_data
    ):
        definition = create(definition_ops, reminder_data)
        definition_scheduler.schedule(definition)
        first = registry.get(definition.id)[0]

        moved = definition_ops.update(
            definition.id,
            {"trigger": {"type": "fixed_instant", "fire_at": "2025-01-06T12:00:00+00:00"}},
        )
        definition_scheduler.reschedule(moved)

        assert first.cancelled
        handles = registry.get(definition.id)
        assert len(handles) == 1
        assert handles[0] is not first
        assert handles[0].next_fire_time == datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


class TestScheduleCron:
    def test_one_timer_per_expression(
        self, definition_scheduler, definition_ops, registry, cron_prompt_data
    ):
        definition = create(definition_ops, cron_prompt_data)

        assert definition_scheduler.schedule(definition) == 2
        handles = registry.get(definition.id)
        assert [h.timer_id for h in handles] == [
            f"cron_{definition.id}_0",
            f"cron_{definition.id}_1",
        ]
        assert [h.next_fire_time for h in handles] == [
            datetime(2025, 1, 7, 9, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 6, 18, 0, tzinfo=timezone.utc),
        ]

    def test_disabled_cron_has_no_timers(
        self, definition_scheduler, definition_ops, registry, cron_prompt_data
    ):
        definition = create(definition_ops, cron_prompt_data, enabled=False)

        assert definition_scheduler.schedule(definition) == 0
        assert registry.get(definition.id) is None

    def test_cancel_leaves_zero_handles(
        self, definition_scheduler, definition_ops, registry, fake_timer_factory, cron_prompt_data
    ):
        definition = create(definition_ops, cron_prompt_data)
        definition_scheduler.schedule(definition)

        definition_scheduler.cancel(definition.id)
        definition_scheduler.cancel(definition.id)

        assert registry.get(definition.id) is None
        assert fake_timer_factory.live_timers == []
        assert all(t.cancel_calls == 1 for t in fake_timer_factory.timers)

    def test_partial_failure_cancels_created_timers(
        self, definition_ops, registry, fake_timer_factory, mock_dispatcher, frozen_clock,
        cron_prompt_data
    ):
        definition = create(definition_ops, cron_prompt_data)
        original = fake_timer_factory.schedule_cron_job
        calls = []

        def flaky(timer_id, expression, timezone, func, args=()):
            calls.append(timer_id)
            if len(calls) == 2:
                raise RuntimeError("scheduler refused job")
            return original(timer_id, expression, timezone, func, args)

        fake_timer_factory.schedule_cron_job = flaky
        scheduler = DefinitionScheduler(
            definition_ops, registry, fake_timer_factory, mock_dispatcher, clock=frozen_clock
        )

        with pytest.raises(RuntimeError):
            scheduler.schedule(definition)
        assert registry.get(definition.id) is None
        assert fake_timer_factory.live_timers == []


class TestFireOneShot:
    @pytest.mark.asyncio
    async def test_webhook_reminder_fires_once_and_is_marked_sent(
        self, settings, definition_ops, registry, fake_timer_factory, frozen_clock, reminder_data
    ):
        dispatcher = Dispatcher(NotificationService(settings))
        scheduler = DefinitionScheduler(
            definition_ops, registry, fake_timer_factory, dispatcher, clock=frozen_clock
        )
        definition = create(definition_ops, reminder_data)
        scheduler.schedule(definition)
        timer = registry.get(definition.id)[0]

        frozen_clock.advance(hours=1)
        with patch("tn_scheduler.services.notification_service.requests.post") as mock_post:
            mock_post.return_value = MagicMock(status_code=200)
            result = await timer.fire()

        assert result.success is True
        mock_post.assert_called_once()
        _, kwargs = mock_post.call_args
        assert kwargs["params"] == {"title": "Daily stand-up", "message": "Join the call"}
        assert kwargs["timeout"] == 10

        stored = definition_ops.get_by_id(definition.id)
        assert stored.status == DefinitionStatus.SENT
        assert stored.last_fired_at == frozen_clock()
        assert stored.last_error is None
        assert registry.list() == []

    @pytest.mark.asyncio
    async def test_failed_dispatch_stays_pending_without_retry(
        self, definition_scheduler, definition_ops, registry, fake_timer_factory,
        mock_dispatcher, reminder_data
    ):
        mock_dispatcher.dispatch.return_value = DispatchResult.failed("Webhook returned HTTP 500")
        definition = create(
            definition_ops, reminder_data, recurrence={"interval": "daily"}
        )
        definition_scheduler.schedule(definition)

        result = await registry.get(definition.id)[0].fire()

        assert result.success is False
        stored = definition_ops.get_by_id(definition.id)
        assert stored.status == DefinitionStatus.PENDING
        assert stored.last_error == "Webhook returned HTTP 500"
        assert stored.last_fired_at is None
        assert registry.list() == []
        assert len(definition_ops.get_all()) == 1
        mock_dispatcher.dispatch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_recurrence_creates_next_definition(
        self, definition_scheduler, definition_ops, registry, reminder_data
    ):
        definition = create(
            definition_ops,
            reminder_data,
            recurrence={"interval": "weekly", "max_occurrences": 3},
        )
        definition_scheduler.schedule(definition)

        await registry.get(definition.id)[0].fire()

        assert definition_ops.get_by_id(definition.id).status == DefinitionStatus.SENT
        others = [d for d in definition_ops.get_all() if d.id != definition.id]
        assert len(others) == 1
        follow_up = others[0]
        assert follow_up.status == DefinitionStatus.PENDING
        assert follow_up.last_fired_at is None
        assert follow_up.recurrence.current_occurrence == 2
        assert follow_up.trigger.fire_at == definition.trigger.fire_at + timedelta(days=7)
        assert follow_up.payload == definition.payload
        assert registry.list() == [follow_up.id]

    @pytest.mark.asyncio
    async def test_recurrence_stops_at_max_occurrences(
        self, definition_scheduler, definition_ops, registry, reminder_data
    ):
        definition = create(
            definition_ops,
            reminder_data,
            recurrence={"interval": "daily", "max_occurrences": 2, "current_occurrence": 2},
        )
        definition_scheduler.schedule(definition)

        await registry.get(definition.id)[0].fire()

        assert len(definition_ops.get_all()) == 1
        assert registry.list() == []

    @pytest.mark.asyncio
    async def test_fire_skips_definition_no_longer_pending(
        self, definition_scheduler, definition_ops, registry, mock_dispatcher, reminder_data
    ):
        definition = create(definition_ops, reminder_data)
        definition_scheduler.schedule(definition)
        timer = registry.get(definition.id)[0]
        definition_ops.update(definition.id, {"status": "sent"})

        assert await timer.fire() is None
        mock_dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reschedule_during_dispatch_keeps_new_occurrence(
        self, definition_scheduler, definition_ops, registry, mock_dispatcher,
        frozen_clock, settings, reminder_data
    ):
        service = DefinitionService(definition_ops, definition_scheduler, settings)
        definition = service.create_definition(reminder_data)
        first_timer = registry.get(definition.id)[0]
        moved_to = FROZEN_NOW + timedelta(hours=5)

        async def dispatch_while_rescheduled(target, fire_time=None):
            if mock_dispatcher.dispatch.await_count == 1:
                service.update_definition(
                    target.id,
                    {"trigger": {"type": "fixed_instant", "fire_at": moved_to.isoformat()}},
                )
            return DispatchResult.ok()

        mock_dispatcher.dispatch.side_effect = dispatch_while_rescheduled

        frozen_clock.advance(hours=1)
        assert (await first_timer.fire()).success

        stored = definition_ops.get_by_id(definition.id)
        assert stored.status == DefinitionStatus.PENDING
        assert stored.trigger.fire_at == moved_to
        assert stored.last_fired_at == frozen_clock()
        second_timer = registry.get(definition.id)[0]
        assert second_timer is not first_timer
        assert second_timer.next_fire_time == moved_to

        frozen_clock.advance(hours=4)
        assert (await second_timer.fire()).success

        assert mock_dispatcher.dispatch.await_count == 2
        assert definition_ops.get_by_id(definition.id).status == DefinitionStatus.SENT
        assert registry.list() == []

    @pytest.mark.asyncio
    async def test_fire_skips_deleted_definition(
        self, definition_scheduler, definition_ops, registry, mock_dispatcher, reminder_data
    ):
        definition = create(definition_ops, reminder_data)
        definition_scheduler.schedule(definition)
        timer = registry.get(definition.id)[0]
        definition_ops.delete(definition.id)

        assert await timer.fire() is None
        mock_dispatcher.dispatch.assert_not_awaited()


class TestFireCron:
    @pytest.mark.asyncio
    async def test_success_records_last_fired_at(
        self, definition_scheduler, definition_ops, registry, frozen_clock, cron_prompt_data
    ):
        definition = create(definition_ops, cron_prompt_data)
        definition_scheduler.schedule(definition)

        result = await registry.get(definition.id)[1].fire()

        assert result.success is True
        stored = definition_ops.get_by_id(definition.id)
        assert stored.last_fired_at == frozen_clock()
        # Cron timers keep running after a firing
        assert len(registry.get(definition.id)) == 2

    @pytest.mark.asyncio
    async def test_failure_records_last_error(
        self, definition_scheduler, definition_ops, registry, mock_dispatcher, cron_prompt_data
    ):
        mock_dispatcher.dispatch.return_value = DispatchResult.failed("timed out")
        definition = create(definition_ops, cron_prompt_data)
        definition_scheduler.schedule(definition)

        await registry.get(definition.id)[0].fire()

        stored = definition_ops.get_by_id(definition.id)
        assert stored.last_error == "timed out"
        assert stored.last_fired_at is None
        assert len(registry.get(definition.id)) == 2

    @pytest.mark.asyncio
    async def test_disabled_definition_drops_stale_timers(
        self, definition_scheduler, definition_ops, registry, mock_dispatcher, cron_prompt_data
    ):
        definition = create(definition_ops, cron_prompt_data)
        definition_scheduler.schedule(definition)
        timer = registry.get(definition.id)[0]
        definition_ops.update(definition.id, {"enabled": False})

        assert await timer.fire() is None
        mock_dispatcher.dispatch.assert_not_awaited()
        assert registry.get(definition.id) is None


class TestStatus:
    def test_status_lists_registry_entries(
        self, definition_scheduler, definition_ops, reminder_data, cron_prompt_data
    ):
        reminder = create(definition_ops, reminder_data)
        cron = create(definition_ops, cron_prompt_data)
        definition_scheduler.schedule(reminder)
        definition_scheduler.schedule(cron)

        status = definition_scheduler.get_status()
        assert status.active_definitions == 2
        assert status.live_timers == 3
        assert sorted(definition_scheduler.list_active_job_ids()) == sorted([reminder.id, cron.id])
