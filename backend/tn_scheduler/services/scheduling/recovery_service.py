# backend/tn_scheduler/services/scheduling/recovery_service.py
"""
Startup recovery - rebuilds the registry from stored definitions.

Past-due pending one-shots are left alone: they stay pending and unscheduled
for an operator to reconcile. One bad definition never stops the others.
"""

from typing import Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ...database.schedule_definition_operations import ScheduleDefinitionOperations
from ...enums import DefinitionStatus, LogEmoji, LoggerName, LogSource
from ...exceptions import RecoveryError
from ...models.schedule_definition_model import ScheduleDefinition
from ..logger import get_service_logger
from .scheduler_service import DefinitionScheduler

recovery_logger = get_service_logger(LoggerName.RECOVERY_SERVICE, LogSource.SCHEDULER)


class RecoveryService:
    """Re-establishes live timers after a process restart."""

    def __init__(
        self,
        scheduler: DefinitionScheduler,
        definition_ops: Optional[ScheduleDefinitionOperations] = None,
    ):
        self.scheduler = scheduler
        self.definition_ops = definition_ops or scheduler.definition_ops
        self.failures: List[RecoveryError] = []

    def recover(self, definitions: Iterable[ScheduleDefinition]) -> int:
        """
        Schedule every pending one-shot and every enabled cron definition.

        Returns:
            Number of definitions that got at least one live timer
        """
        scheduled = 0
        for definition in definitions:
            if definition.is_one_shot and definition.status != DefinitionStatus.PENDING:
                continue
            if definition.is_cron and not definition.enabled:
                continue
            try:
                installed = self.scheduler.schedule(definition)
            except Exception as e:
                self._record_failure(RecoveryError(definition.id, str(e)))
                continue
            if installed:
                scheduled += 1
        return scheduled

    def recover_from_store(self) -> int:
        """
        Recover straight from the definitions file.

        Records that no longer validate (e.g. a corrupted cron expression)
        are reported as recovery failures instead of being skipped silently.
        """
        self.failures = []
        recovery_logger.info("Initializing schedules from stored definitions...", emoji=LogEmoji.PROCESSING)

        definitions = []
        for record in self.definition_ops.get_raw_records():
            try:
                definitions.append(ScheduleDefinition.model_validate(record))
            except PydanticValidationError as e:
                self._record_failure(
                    RecoveryError(str(record.get("id", "?")), f"invalid record: {e}")
                )

        scheduled = self.recover(definitions)
        recovery_logger.info(
            f"Recovered {scheduled} of {len(definitions)} definitions "
            f"({len(self.failures)} failed)",
            emoji=LogEmoji.SUCCESS if not self.failures else LogEmoji.WARNING,
        )
        return scheduled

    def _record_failure(self, error: RecoveryError) -> None:
        self.failures.append(error)
        recovery_logger.error(str(error))
