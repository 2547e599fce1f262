#!/usr/bin/env python3
# backend/tests/unit/services/test_definition_service.py
"""Tests for the CRUD surface consumed by the HTTP layer."""

from datetime import datetime, timezone

import pytest

from tn_scheduler.enums import NotificationChannel
from tn_scheduler.exceptions import ValidationError
from tn_scheduler.models.schedule_definition_model import (
    FixedInstantTrigger,
    NotificationPayload,
    ScheduleDefinitionUpdate,
)
from tn_scheduler.services.scheduling.definition_service import DefinitionService


@pytest.fixture
def definition_service(definition_ops, definition_scheduler, settings):
    return DefinitionService(definition_ops, definition_scheduler, settings)


class TestCreateDefinition:
    def test_create_persists_and_schedules(self, definition_service, definition_ops, reminder_data):
        definition = definition_service.create_definition(reminder_data)

        assert definition_ops.get_by_id(definition.id) is not None
        assert definition_service.list_active_job_ids() == [definition.id]

    def test_create_cron_with_two_expressions(self, definition_service, registry, cron_prompt_data):
        definition = definition_service.create_definition(cron_prompt_data)
        assert len(registry.get(definition.id)) == 2

    def test_invalid_cron_raises_validation_error(self, definition_service, cron_prompt_data):
        data = {**cron_prompt_data, "trigger": "0 9 * *"}
        with pytest.raises(ValidationError, match="exactly 5 fields"):
            definition_service.create_definition(data)

    def test_invalid_date_raises_validation_error(self, definition_service, reminder_data):
        data = {**reminder_data, "trigger": {"type": "fixed_instant", "fire_at": "next week"}}
        with pytest.raises(ValidationError, match="Invalid date format"):
            definition_service.create_definition(data)

    def test_default_timezone_from_settings(self, definition_service, reminder_data, settings):
        data = {k: v for k, v in reminder_data.items() if k != "timezone"}
        definition = definition_service.create_definition(data)
        assert definition.timezone == settings.timezone


class TestUpdateDefinition:
    def test_disable_cron_removes_timers_but_keeps_definition(
        self, definition_service, definition_ops, registry, fake_timer_factory, cron_prompt_data
    ):
        definition = definition_service.create_definition(cron_prompt_data)
        assert len(registry.get(definition.id)) == 2

        updated = definition_service.update_definition(definition.id, {"enabled": False})

        assert updated.enabled is False
        assert registry.get(definition.id) is None
        assert fake_timer_factory.live_timers == []
        assert definition_ops.get_by_id(definition.id) is not None

    def test_reenable_restores_timers(self, definition_service, registry, cron_prompt_data):
        definition = definition_service.create_definition(cron_prompt_data)
        definition_service.update_definition(definition.id, {"enabled": False})
        definition_service.update_definition(definition.id, {"enabled": True})
        assert len(registry.get(definition.id)) == 2

    def test_name_change_keeps_existing_timer(self, definition_service, registry, reminder_data):
        definition = definition_service.create_definition(reminder_data)
        before = registry.get(definition.id)[0]

        updated = definition_service.update_definition(definition.id, {"name": "Renamed"})

        assert updated.name == "Renamed"
        assert registry.get(definition.id)[0] is before
        assert not before.cancelled

    def test_trigger_change_replaces_timer(self, definition_service, registry, reminder_data):
        definition = definition_service.create_definition(reminder_data)
        before = registry.get(definition.id)[0]

        definition_service.update_definition(
            definition.id, {"trigger": {"type": "fixed_instant", "fire_at": "2025/1/7 09:00"}}
        )

        after = registry.get(definition.id)[0]
        assert before.cancelled
        assert after is not before

    def test_moving_trigger_into_past_unschedules(self, definition_service, registry, reminder_data):
        definition = definition_service.create_definition(reminder_data)
        definition_service.update_definition(
            definition.id, {"trigger": {"type": "fixed_instant", "fire_at": "2024/1/1 09:00"}}
        )
        assert registry.get(definition.id) is None

    def test_unknown_id_returns_none(self, definition_service):
        assert definition_service.update_definition("missing", {"enabled": False}) is None

    def test_invalid_merge_raises_validation_error(
        self, definition_service, definition_ops, reminder_data
    ):
        definition = definition_service.create_definition(reminder_data)
        with pytest.raises(ValidationError):
            definition_service.update_definition(definition.id, {"trigger": "0 9 * * *"})
        # Stored record is untouched
        assert definition_ops.get_by_id(definition.id).trigger == definition.trigger

    def test_typed_trigger_and_payload_update(
        self, definition_service, definition_ops, registry, reminder_data
    ):
        definition = definition_service.create_definition(reminder_data)
        new_fire_at = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)

        updated = definition_service.update_definition(
            definition.id,
            ScheduleDefinitionUpdate(
                trigger=FixedInstantTrigger(fire_at=new_fire_at),
                payload=NotificationPayload(title="Retro", channel=NotificationChannel.EMAIL),
            ),
        )

        assert updated.trigger.fire_at == new_fire_at
        assert updated.payload.title == "Retro"
        assert updated.payload.channel == NotificationChannel.EMAIL
        assert definition_ops.get_by_id(definition.id).trigger.fire_at == new_fire_at
        assert registry.get(definition.id)[0].next_fire_time == new_fire_at


class TestDeleteDefinition:
    def test_delete_cancels_then_removes(
        self, definition_service, definition_ops, fake_timer_factory, cron_prompt_data
    ):
        definition = definition_service.create_definition(cron_prompt_data)

        assert definition_service.delete_definition(definition.id) is True
        assert definition_ops.get_by_id(definition.id) is None
        assert definition_service.list_active_job_ids() == []
        assert fake_timer_factory.live_timers == []

    def test_delete_unknown_id_returns_false(self, definition_service):
        assert definition_service.delete_definition("missing") is False


def test_get_status(definition_service, reminder_data, cron_prompt_data):
    definition_service.create_definition(reminder_data)
    definition_service.create_definition(cron_prompt_data)

    status = definition_service.get_status()
    assert status.running is False
    assert status.active_definitions == 2
    assert status.live_timers == 3
