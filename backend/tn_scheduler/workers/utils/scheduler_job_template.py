# backend/tn_scheduler/workers/utils/scheduler_job_template.py
"""
Scheduler Job Template

ROLE: Creates APScheduler jobs with one standard configuration and hands
them back as cancellable timers.

┌─ SchedulerJobTemplate (this file) ──────────────────────────────────────┐
│                                                                         │
│  ┌─ DATE JOBS ────────────────────┐   ┌─ CRON JOBS ──────────────────┐  │
│  │ • One-shot reminders           │   │ • Recurring prompts          │  │
│  │ • Never fire retroactively     │   │ • Weather polling            │  │
│  │                                │   │ • Housekeeping               │  │
│  └────────────────────────────────┘   └──────────────────────────────┘  │
│                                                                         │
└─────────────────────────────────────────────────────────────────────────┘

CONFIGURATION STANDARDS:
• max_instances: SCHEDULER_MAX_INSTANCES (prevents job overlap)
• coalesce: True (combines missed executions)
• misfire_grace_time: CRON_MISFIRE_GRACE_SECONDS for cron jobs
• Consistent job removal before re-adding (prevents conflicts)
"""

from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.date import DateTrigger

from ...constants import CRON_MISFIRE_GRACE_SECONDS, SCHEDULER_MAX_INSTANCES
from ...enums import LogEmoji, LoggerName, LogSource
from ...exceptions import ValidationError
from ...services.logger import get_service_logger
from ...utils.cron_utils import build_cron_trigger
from ...utils.time_utils import ensure_utc

timer_logger = get_service_logger(LoggerName.JOB_REGISTRY, LogSource.SCHEDULER)


class ApschedulerTimer:
    """Cancellable handle around one APScheduler job."""

    def __init__(self, scheduler, job_id: str, fallback_next: Optional[datetime] = None):
        self.scheduler = scheduler
        self.timer_id = job_id
        self._fallback_next = fallback_next
        self._cancelled = False

    @property
    def next_fire_time(self) -> Optional[datetime]:
        if self._cancelled:
            return None
        job = self.scheduler.get_job(self.timer_id)
        if job is None:
            return None
        next_run = getattr(job, "next_run_time", None)
        return next_run if next_run is not None else self._fallback_next

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        try:
            self.scheduler.remove_job(self.timer_id)
        except JobLookupError:
            # Already ran (date jobs) or removed elsewhere
            pass

    def __repr__(self) -> str:
        return f"ApschedulerTimer({self.timer_id!r})"


class SchedulerJobTemplate:
    """Template for common job scheduling patterns with consistent configuration."""

    def __init__(self, scheduler):
        """Initialize with the scheduler instance owned by the worker."""
        self.scheduler = scheduler

    def _remove_existing(self, job_id: str) -> None:
        if self.scheduler.get_job(job_id) is not None:
            self.scheduler.remove_job(job_id)

    def schedule_date_job(
        self,
        timer_id: str,
        run_at: datetime,
        func: Callable,
        args: Sequence[Any] = (),
    ) -> ApschedulerTimer:
        """
        Schedule a single run at ``run_at``.

        misfire_grace_time is None so a run delayed by a busy event loop
        still happens once.
        """
        self._remove_existing(timer_id)
        run_at = ensure_utc(run_at)
        self.scheduler.add_job(
            func=func,
            trigger=DateTrigger(run_date=run_at),
            id=timer_id,
            args=list(args),
            max_instances=SCHEDULER_MAX_INSTANCES,
            coalesce=True,
            misfire_grace_time=None,
        )
        timer_logger.debug(
            f"Scheduled date job {timer_id} at {run_at.isoformat()}",
            emoji=LogEmoji.SCHEDULED,
        )
        return ApschedulerTimer(self.scheduler, timer_id, fallback_next=run_at)

    def schedule_cron_job(
        self,
        timer_id: str,
        expression: str,
        timezone: str,
        func: Callable,
        args: Sequence[Any] = (),
        **kwargs,
    ) -> ApschedulerTimer:
        """
        Schedule a recurring job from a 5-field crontab expression.

        Raises:
            ValidationError: The expression cannot be parsed
        """
        try:
            trigger = build_cron_trigger(expression, timezone)
        except ValueError as e:
            raise ValidationError(f"Invalid cron expression '{expression}': {e}") from e

        self._remove_existing(timer_id)

        kwargs.setdefault("max_instances", SCHEDULER_MAX_INSTANCES)
        kwargs.setdefault("coalesce", True)
        kwargs.setdefault("misfire_grace_time", CRON_MISFIRE_GRACE_SECONDS)

        self.scheduler.add_job(
            func=func, trigger=trigger, id=timer_id, args=list(args), **kwargs
        )
        timer_logger.debug(
            f"Scheduled cron job {timer_id} ({expression} {timezone})",
            emoji=LogEmoji.SCHEDULED,
        )
        return ApschedulerTimer(self.scheduler, timer_id)
