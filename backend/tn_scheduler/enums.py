# backend/tn_scheduler/enums.py
"""
Centralized enum definitions for the scheduling engine.

All string-valued enums inherit from ``str`` so they serialize to their
plain values inside the JSON record files.
"""

from enum import Enum


# ════════════════════════════════════════════════════════════════════════════════
#                                SCHEDULE DEFINITIONS
# ════════════════════════════════════════════════════════════════════════════════


class DefinitionKind(str, Enum):
    """How a schedule definition turns into live timers."""

    ONE_SHOT_WITH_RECURRENCE = "one_shot_with_recurrence"
    CRON_RECURRING = "cron_recurring"


class DefinitionStatus(str, Enum):
    """Delivery status, meaningful for one-shot definitions only."""

    PENDING = "pending"
    SENT = "sent"


class RecurrenceInterval(str, Enum):
    """Calendar unit used to derive the next occurrence of a one-shot."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class NotificationChannel(str, Enum):
    """Transport used to deliver a notification payload."""

    WEBHOOK = "webhook"
    EMAIL = "email"


# ════════════════════════════════════════════════════════════════════════════════
#                                EXECUTION RESULTS
# ════════════════════════════════════════════════════════════════════════════════


class ExecutionStatus(str, Enum):
    """Outcome stored on an execution-result record."""

    SUCCESS = "success"
    ERROR = "error"


class ScheduledBy(str, Enum):
    """Who initiated a prompt execution."""

    SCHEDULED = "scheduled"
    MANUAL = "manual"
    TEST = "test"


class WeatherApiSource(str, Enum):
    """Upstream weather providers polled for a location."""

    WEATHERAPI = "weatherapi"
    YAHOO = "yahoo"


# ════════════════════════════════════════════════════════════════════════════════
#                                    LOGGING
# ════════════════════════════════════════════════════════════════════════════════


class LogLevel(str, Enum):
    """Log level constants for centralized logging system."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogSource(str, Enum):
    """Log source constants for identifying log origins."""

    WORKER = "worker"
    SYSTEM = "system"
    DATABASE = "database"
    SCHEDULER = "scheduler"
    DISPATCH = "dispatch"


class LogEmoji(str, Enum):
    """Type-safe emoji constants for log messages."""

    # Status emojis
    SUCCESS = "✅"
    FAILED = "❌"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "ℹ️"
    DEBUG = "🐞"
    CANCELED = "🚫"
    SKIPPED = "⏭️"

    # Work emojis
    PROCESSING = "🔄"
    SCHEDULED = "📅"
    TIMER = "⏰"
    STARTUP = "🚀"
    SHUTDOWN = "🛑"
    SYSTEM = "⚙️"
    CLEANUP = "🗑️"

    # Dispatch emojis
    NOTIFICATION = "📢"
    WEBHOOK = "🔗"
    EMAIL = "📧"
    ROBOT = "🤖"
    WEATHER = "🌤️"
    REPEAT = "🔁"


class LoggerName(str, Enum):
    """Logger name constants for categorizing log entries."""

    SCHEDULER_WORKER = "scheduler_worker"
    SCHEDULE_SERVICE = "schedule_service"
    DEFINITION_SERVICE = "definition_service"
    JOB_REGISTRY = "job_registry"
    DISPATCHER = "dispatcher"
    NOTIFICATION_SERVICE = "notification_service"
    COMPLETION_SERVICE = "completion_service"
    WEATHER_SERVICE = "weather_service"
    RECOVERY_SERVICE = "recovery_service"
    DEFINITION_STORE = "definition_store"
    SYSTEM = "system"


class WorkerType(str, Enum):
    """Worker type identifiers for status reporting and monitoring."""

    SCHEDULER_WORKER = "SchedulerWorker"
