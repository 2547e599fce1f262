# backend/tn_scheduler/exceptions.py
"""
Custom exceptions for the scheduling engine.

Centralized location for all custom exception classes to avoid
duplicating exception definitions across modules.
"""

# Each exception type represents a distinct error domain with its own
# handling rule (see DefinitionService and Dispatcher).


class SchedulerEngineError(Exception):
    """Base exception for all scheduling-engine errors."""

    pass


class ValidationError(SchedulerEngineError):
    """Malformed trigger, cron syntax or definition payload."""

    pass


class DeliveryError(SchedulerEngineError):
    """Dispatch failed: transport error, non-2xx, timeout or missing transport."""

    pass


class NotFoundError(SchedulerEngineError):
    """Operation referenced an unknown definition id."""

    pass


class RecoveryError(SchedulerEngineError):
    """A single definition could not be re-established at startup."""

    def __init__(self, definition_id: str, reason: str):
        self.definition_id = definition_id
        self.reason = reason
        super().__init__(f"Failed to recover definition {definition_id}: {reason}")


class ConfigurationError(SchedulerEngineError):
    """Custom exception for configuration and validation errors."""

    pass


class StorageError(SchedulerEngineError):
    """JSON record file could not be read or written."""

    pass
