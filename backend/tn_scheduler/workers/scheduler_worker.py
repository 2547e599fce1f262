# backend/tn_scheduler/workers/scheduler_worker.py
"""
Scheduler Worker - owns the APScheduler instance and the engine around it.

┌─ SchedulerWorker (this file) ───────────────────────────────────────────┐
│ • APScheduler lifecycle management                                      │
│ • Startup recovery of stored definitions                                │
│ • Housekeeping job (purges old results and weather snapshots)           │
└─────────────────────────────────────────────────────────────────────────┘
                                   │
                 ┌─────────────────┼─────────────────┐
                 ▼                 ▼                 ▼
┌─ UTILITIES ──────────┐ ┌─ ENGINE ───────────┐ ┌─ SURFACE ──────────┐
│ • JobIdGenerator     │ │ • JobRegistry      │ │ • DefinitionService│
│ • SchedulerJobTempl. │ │ • DefinitionSched. │ │                    │
│                      │ │ • RecoveryService  │ │                    │
└──────────────────────┘ └────────────────────┘ └────────────────────┘
"""

import asyncio
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import Settings
from ..constants import HOUSEKEEPING_CRON, HOUSEKEEPING_JOB_ID
from ..database.execution_result_operations import ExecutionResultOperations
from ..database.schedule_definition_operations import ScheduleDefinitionOperations
from ..database.weather_operations import WeatherSnapshotOperations
from ..enums import LogEmoji, LoggerName, LogSource, WorkerType
from ..exceptions import StorageError
from ..services.logger import get_service_logger
from ..services.scheduling.definition_service import DefinitionService
from ..services.scheduling.dispatcher import Dispatcher
from ..services.scheduling.job_registry import JobRegistry
from ..services.scheduling.recovery_service import RecoveryService
from ..services.scheduling.scheduler_service import DefinitionScheduler
from .base_worker import BaseWorker
from .utils import SchedulerJobTemplate

scheduler_logger = get_service_logger(LoggerName.SCHEDULER_WORKER, LogSource.WORKER)


class SchedulerWorker(BaseWorker):
    """
    Runs the scheduling engine inside the worker process.

    Responsibilities:
    - APScheduler lifecycle management
    - Rebuilding live timers from stored definitions at startup
    - Periodic housekeeping of result and weather files
    """

    def __init__(
        self,
        settings: Settings,
        definition_ops: ScheduleDefinitionOperations,
        result_ops: ExecutionResultOperations,
        snapshot_ops: WeatherSnapshotOperations,
        dispatcher: Dispatcher,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        super().__init__(WorkerType.SCHEDULER_WORKER.value)

        self.settings = settings
        self.definition_ops = definition_ops
        self.result_ops = result_ops
        self.snapshot_ops = snapshot_ops

        # APScheduler setup
        self.scheduler = scheduler or AsyncIOScheduler(timezone=settings.timezone)
        self.job_template = SchedulerJobTemplate(self.scheduler)

        # Engine
        self.registry = JobRegistry()
        self.definition_scheduler = DefinitionScheduler(
            definition_ops, self.registry, self.job_template, dispatcher
        )
        self.recovery_service = RecoveryService(self.definition_scheduler, definition_ops)
        self.definition_service = DefinitionService(
            definition_ops, self.definition_scheduler, settings
        )

    async def initialize(self) -> None:
        """Start APScheduler, install housekeeping, then recover stored definitions."""
        if not self.scheduler.running:
            self.scheduler.start()
        self.definition_service.scheduler_running = True
        scheduler_logger.info("APScheduler started", emoji=LogEmoji.STARTUP)

        self.job_template.schedule_cron_job(
            HOUSEKEEPING_JOB_ID,
            HOUSEKEEPING_CRON,
            self.settings.timezone,
            self.run_housekeeping,
        )

        recovered = self.recovery_service.recover_from_store()
        scheduler_logger.info(
            f"Scheduler ready with {recovered} recovered definition(s)",
            emoji=LogEmoji.SUCCESS,
        )

    async def cleanup(self) -> None:
        """Drop live timers and stop APScheduler without waiting for running jobs."""
        self.registry.clear()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            # AsyncIOScheduler completes shutdown on the next loop iteration
            await asyncio.sleep(0)
        self.definition_service.scheduler_running = False
        scheduler_logger.info("APScheduler stopped", emoji=LogEmoji.SHUTDOWN)

    async def run_housekeeping(self) -> Dict[str, int]:
        """Purge execution results and weather snapshots past their retention."""
        removed = {"execution_results": 0, "weather_snapshots": 0}
        try:
            removed["execution_results"] = await self.run_in_executor(
                self.result_ops.cleanup_older_than, self.settings.result_retention_days
            )
            removed["weather_snapshots"] = await self.run_in_executor(
                self.snapshot_ops.cleanup_older_than, self.settings.weather_retention_days
            )
        except StorageError as e:
            scheduler_logger.error("Housekeeping failed", exception=e)
            return removed

        scheduler_logger.info(
            f"Housekeeping removed {removed['execution_results']} results and "
            f"{removed['weather_snapshots']} weather snapshots",
            emoji=LogEmoji.CLEANUP,
        )
        return removed

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status["scheduler"] = self.definition_service.get_status().to_dict()
        status["recovery_failures"] = [
            {"definition_id": f.definition_id, "reason": f.reason}
            for f in self.recovery_service.failures
        ]
        return status
