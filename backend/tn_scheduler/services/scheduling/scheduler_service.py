# backend/tn_scheduler/services/scheduling/scheduler_service.py
"""
Definition Scheduler - keeps live timers consistent with stored definitions.

ROLE: The only component that creates or cancels timers for definitions.

┌─ DefinitionScheduler (this file) ─────────────────────────────────────────┐
│                                                                          │
│  schedule / reschedule / cancel ──► JobRegistry ──► timer factory         │
│                                                                          │
│  one-shot fires ──► deregister ──► Dispatcher ──► mark sent               │
│                                                 └─► next occurrence       │
│                                                     (new definition)      │
│                                                                          │
│  cron fires ──► Dispatcher ──► last_fired_at / last_error                 │
│                                                                          │
└──────────────────────────────────────────────────────────────────────────┘

Failed dispatches are recorded on the definition and never retried. A
one-shot whose instant has passed is never fired retroactively.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from pydantic import ValidationError as PydanticValidationError

from ...database.schedule_definition_operations import ScheduleDefinitionOperations
from ...enums import DefinitionStatus, LogEmoji, LoggerName, LogSource
from ...exceptions import StorageError
from ...models.schedule_definition_model import (
    FixedInstantTrigger,
    ScheduleDefinition,
    ScheduleDefinitionCreate,
)
from ...models.scheduler_responses import DispatchResult, SchedulerStatus
from ...utils.time_utils import utc_now
from ...workers.utils.job_id_generator import JobIdGenerator
from ..logger import get_service_logger
from .dispatcher import Dispatcher
from .job_registry import CancellableTimer, JobRegistry
from .recurrence import next_occurrence
from .triggers import FixedInstant, build_triggers

schedule_logger = get_service_logger(LoggerName.SCHEDULE_SERVICE, LogSource.SCHEDULER)


class TimerFactory(Protocol):
    """Creates live timers; implemented by SchedulerJobTemplate."""

    def schedule_date_job(
        self, timer_id: str, run_at: datetime, func: Callable, args: Sequence[Any] = ()
    ) -> CancellableTimer: ...

    def schedule_cron_job(
        self,
        timer_id: str,
        expression: str,
        timezone: str,
        func: Callable,
        args: Sequence[Any] = (),
    ) -> CancellableTimer: ...


class DefinitionScheduler:
    """Schedules, reschedules and fires definitions."""

    def __init__(
        self,
        definition_ops: ScheduleDefinitionOperations,
        registry: JobRegistry,
        timer_factory: TimerFactory,
        dispatcher: Dispatcher,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.definition_ops = definition_ops
        self.registry = registry
        self.timer_factory = timer_factory
        self.dispatcher = dispatcher
        self.clock = clock

    # ════════════════════════════════════════════════════════════════════════
    #                              SCHEDULING
    # ════════════════════════════════════════════════════════════════════════

    def schedule(self, definition: ScheduleDefinition) -> int:
        """
        Install the timers a definition needs right now.

        Any timers already held for the id are cancelled first.

        Returns:
            Number of live timers installed (0 when nothing is due)

        Raises:
            ValidationError: A cron expression cannot be parsed
        """
        self.registry.cancel(definition.id)
        if definition.is_one_shot:
            return self._schedule_one_shot(definition)
        return self._schedule_cron(definition)

    def reschedule(self, definition: ScheduleDefinition) -> int:
        self.cancel(definition.id)
        return self.schedule(definition)

    def cancel(self, definition_id: str) -> None:
        """Stop future firings; a dispatch already running is unaffected."""
        self.registry.cancel(definition_id)

    def _schedule_one_shot(self, definition: ScheduleDefinition) -> int:
        if definition.status != DefinitionStatus.PENDING:
            schedule_logger.debug(f"Definition {definition.id} already sent, not scheduling")
            return 0

        trigger = FixedInstant(definition.trigger.fire_at)
        fire_at = trigger.next_fire_time(self.clock())
        if fire_at is None:
            schedule_logger.info(
                f"Definition {definition.id} notification time has passed, skipping schedule",
                emoji=LogEmoji.SKIPPED,
            )
            return 0

        handle = self.timer_factory.schedule_date_job(
            JobIdGenerator.one_shot(definition.id),
            fire_at,
            self.fire_one_shot,
            (definition.id,),
        )
        self.registry.set(definition.id, [handle])
        schedule_logger.info(
            f"Scheduled definition {definition.id} for {fire_at.isoformat()}",
            emoji=LogEmoji.SCHEDULED,
        )
        return 1

    def _schedule_cron(self, definition: ScheduleDefinition) -> int:
        if not definition.enabled:
            schedule_logger.debug(f"Definition {definition.id} disabled, no timers")
            return 0

        triggers = build_triggers(definition.trigger, definition.timezone)
        handles = []
        try:
            for index, trigger in enumerate(triggers):
                handles.append(
                    self.timer_factory.schedule_cron_job(
                        JobIdGenerator.cron(definition.id, index),
                        trigger.expression,
                        definition.timezone,
                        self.fire_cron,
                        (definition.id, index),
                    )
                )
        except Exception:
            for handle in handles:
                handle.cancel()
            raise

        self.registry.set(definition.id, handles)
        expressions = ", ".join(t.expression for t in triggers)
        schedule_logger.info(
            f"Scheduled definition {definition.id} with {len(handles)} cron timer(s): "
            f"{expressions}",
            emoji=LogEmoji.SCHEDULED,
        )
        return len(handles)

    # ════════════════════════════════════════════════════════════════════════
    #                                FIRING
    # ════════════════════════════════════════════════════════════════════════

    async def fire_one_shot(self, definition_id: str) -> Optional[DispatchResult]:
        """
        Timer callback for one-shot definitions.

        The registry entry is dropped before the dispatch is awaited, so a
        concurrent reschedule installs a fresh timer instead of racing this one.
        """
        self.registry.cancel(definition_id)

        definition = self.definition_ops.get_by_id(definition_id)
        if definition is None:
            schedule_logger.warning(f"Fired definition {definition_id} no longer exists")
            return None
        if definition.status != DefinitionStatus.PENDING:
            schedule_logger.debug(f"Fired definition {definition_id} is not pending, skipping")
            return None

        intended = definition.trigger.fire_at
        result = await self.dispatcher.dispatch(definition, fire_time=intended)
        if not result.success:
            schedule_logger.error(
                f"Failed to send notification for definition {definition_id}: {result.error}"
            )
            self._record(definition_id, {"last_error": result.error})
            return result

        current = self.definition_ops.get_by_id(definition_id)
        if (
            current is not None
            and isinstance(current.trigger, FixedInstantTrigger)
            and current.trigger.fire_at != intended
        ):
            # Rescheduled while dispatching; the new instant stays pending
            self._record(definition_id, {"last_fired_at": self.clock(), "last_error": None})
            schedule_logger.info(
                f"Definition {definition_id} was rescheduled during dispatch, "
                f"keeping it pending for {current.trigger.fire_at.isoformat()}",
                emoji=LogEmoji.SCHEDULED,
            )
            return result

        self._record(
            definition_id,
            {
                "status": DefinitionStatus.SENT.value,
                "last_fired_at": self.clock(),
                "last_error": None,
            },
        )
        schedule_logger.info(
            f"Notification sent successfully for definition {definition_id}",
            emoji=LogEmoji.SUCCESS,
        )

        if definition.recurrence is not None:
            self.schedule_next_occurrence(definition, intended)
        return result

    async def fire_cron(self, definition_id: str, index: int) -> Optional[DispatchResult]:
        """Timer callback for one cron expression of a recurring definition."""
        definition = self.definition_ops.get_by_id(definition_id)
        if definition is None or not definition.enabled:
            schedule_logger.warning(
                f"Cron timer {index} fired for missing or disabled definition {definition_id}"
            )
            self.registry.cancel(definition_id)
            return None

        result = await self.dispatcher.dispatch(definition, fire_time=self.clock())
        if result.success:
            self._record(definition_id, {"last_fired_at": self.clock(), "last_error": None})
        else:
            self._record(definition_id, {"last_error": result.error})
        return result

    def schedule_next_occurrence(
        self, definition: ScheduleDefinition, intended: datetime
    ) -> Optional[ScheduleDefinition]:
        """
        Create and schedule the definition for the next occurrence.

        The next instant is computed from the intended fire time, not from
        when the dispatch actually finished.
        """
        recurrence = definition.recurrence
        next_at = next_occurrence(intended, recurrence, definition.timezone)
        if next_at is None:
            schedule_logger.info(
                f"Repeat ended for definition {definition.id}", emoji=LogEmoji.REPEAT
            )
            return None

        create = ScheduleDefinitionCreate(
            kind=definition.kind,
            name=definition.name,
            trigger=FixedInstantTrigger(fire_at=next_at),
            payload=definition.payload,
            recurrence=recurrence.model_copy(
                update={"current_occurrence": recurrence.current_occurrence + 1}
            ),
            timezone=definition.timezone,
        )
        next_definition = self.definition_ops.create(create)
        schedule_logger.info(
            f"Created occurrence {recurrence.current_occurrence + 1} of {definition.id} "
            f"as {next_definition.id} at {next_at.isoformat()}",
            emoji=LogEmoji.REPEAT,
        )
        self.schedule(next_definition)
        return next_definition

    def _record(self, definition_id: str, changes: Dict[str, Any]) -> None:
        """Persist dispatch bookkeeping; a vanished definition is ignored."""
        try:
            self.definition_ops.update(definition_id, changes)
        except (StorageError, PydanticValidationError) as e:
            schedule_logger.error(
                f"Failed to record dispatch outcome for {definition_id}", exception=e
            )

    # ════════════════════════════════════════════════════════════════════════
    #                             INTROSPECTION
    # ════════════════════════════════════════════════════════════════════════

    def list_active_job_ids(self) -> List[str]:
        return self.registry.list()

    def get_status(self, running: bool = True) -> SchedulerStatus:
        jobs = [self.registry.describe(d) for d in self.registry.list()]
        jobs = [job for job in jobs if job is not None]
        return SchedulerStatus(
            running=running,
            active_definitions=len(jobs),
            live_timers=sum(job.timer_count for job in jobs),
            jobs=jobs,
        )
