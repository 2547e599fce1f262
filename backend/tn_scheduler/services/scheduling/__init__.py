"""
Scheduling engine: triggers, recurrence, the live-timer registry, the
definition scheduler and the services built on top of it.
"""

from .definition_service import DefinitionService
from .dispatcher import Dispatcher
from .job_registry import CancellableTimer, JobRegistry
from .recovery_service import RecoveryService
from .recurrence import next_occurrence
from .scheduler_service import DefinitionScheduler, TimerFactory
from .triggers import CronExpression, FixedInstant, Trigger, build_triggers

__all__ = [
    "CancellableTimer",
    "CronExpression",
    "DefinitionScheduler",
    "DefinitionService",
    "Dispatcher",
    "FixedInstant",
    "JobRegistry",
    "RecoveryService",
    "TimerFactory",
    "Trigger",
    "build_triggers",
    "next_occurrence",
]
