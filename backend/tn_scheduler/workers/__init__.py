"""
Worker module for the scheduling engine.

- SchedulerWorker: APScheduler lifecycle, startup recovery and housekeeping

Import SchedulerWorker from ``tn_scheduler.workers.scheduler_worker``; the
scheduling services import ``workers.utils`` and would otherwise form an
import cycle through this package.
"""

from .base_worker import BaseWorker

__all__ = ["BaseWorker"]
