# backend/tn_scheduler/services/scheduling/definition_service.py
"""
Definition Service - the programmatic surface used by the HTTP layer.

Every mutation persists first and then brings the live timers in line with
the stored record.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ...config import Settings
from ...database.schedule_definition_operations import ScheduleDefinitionOperations
from ...enums import LogEmoji, LoggerName, LogSource
from ...exceptions import ValidationError
from ...models.schedule_definition_model import (
    TRIGGER_AFFECTING_FIELDS,
    ScheduleDefinition,
    ScheduleDefinitionCreate,
    ScheduleDefinitionUpdate,
)
from ...models.scheduler_responses import SchedulerStatus
from ..logger import get_service_logger
from .scheduler_service import DefinitionScheduler

definition_logger = get_service_logger(LoggerName.DEFINITION_SERVICE, LogSource.SCHEDULER)


def _validation_message(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "definition"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


class DefinitionService:
    """Create, update, delete and inspect schedule definitions."""

    def __init__(
        self,
        definition_ops: ScheduleDefinitionOperations,
        scheduler: DefinitionScheduler,
        settings: Settings,
    ):
        self.definition_ops = definition_ops
        self.scheduler = scheduler
        self.settings = settings
        self.scheduler_running = False

    def create_definition(
        self, payload: Union[ScheduleDefinitionCreate, Dict[str, Any]]
    ) -> ScheduleDefinition:
        """
        Persist a new definition, then schedule it unless already past due.

        Raises:
            ValidationError: Malformed trigger, cron syntax or payload
        """
        if not isinstance(payload, ScheduleDefinitionCreate):
            data = dict(payload)
            data.setdefault("timezone", self.settings.timezone)
            try:
                payload = ScheduleDefinitionCreate.model_validate(data)
            except PydanticValidationError as e:
                raise ValidationError(_validation_message(e)) from e

        definition = self.definition_ops.create(payload)
        self.scheduler.schedule(definition)
        definition_logger.info(
            f"Created {definition.kind.value} definition {definition.id}",
            emoji=LogEmoji.SUCCESS,
        )
        return definition

    def update_definition(
        self,
        definition_id: str,
        partial: Union[ScheduleDefinitionUpdate, Dict[str, Any]],
    ) -> Optional[ScheduleDefinition]:
        """
        Merge ``partial`` into the stored definition.

        Timers are rebuilt only when a trigger-affecting field changed.

        Returns:
            The updated definition, or None for an unknown id

        Raises:
            ValidationError: The update or the merged definition is invalid
        """
        try:
            if not isinstance(partial, ScheduleDefinitionUpdate):
                partial = ScheduleDefinitionUpdate.model_validate(partial)
            changes = partial.changes()
            updated = self.definition_ops.update(definition_id, changes)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        if updated is None:
            definition_logger.debug(f"Update of unknown definition {definition_id} ignored")
            return None

        if TRIGGER_AFFECTING_FIELDS.intersection(changes):
            self.scheduler.reschedule(updated)
        definition_logger.info(
            f"Updated definition {definition_id} ({', '.join(sorted(changes)) or 'no fields'})"
        )
        return updated

    def delete_definition(self, definition_id: str) -> bool:
        """Cancel live timers, then remove the stored definition."""
        self.scheduler.cancel(definition_id)
        deleted = self.definition_ops.delete(definition_id)
        if deleted:
            definition_logger.info(
                f"Deleted definition {definition_id}", emoji=LogEmoji.CLEANUP
            )
        return deleted

    def get_definition(self, definition_id: str) -> Optional[ScheduleDefinition]:
        return self.definition_ops.get_by_id(definition_id)

    def list_definitions(self) -> List[ScheduleDefinition]:
        return self.definition_ops.get_all()

    def list_active_job_ids(self) -> List[str]:
        return self.scheduler.list_active_job_ids()

    def get_status(self) -> SchedulerStatus:
        return self.scheduler.get_status(running=self.scheduler_running)
