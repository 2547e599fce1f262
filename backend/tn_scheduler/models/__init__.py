from .execution_result_model import ExecutionResult
from .schedule_definition_model import (
    TRIGGER_AFFECTING_FIELDS,
    CronTriggerSpec,
    FixedInstantTrigger,
    NotificationPayload,
    Payload,
    PromptPayload,
    RecurrenceSettings,
    ScheduleDefinition,
    ScheduleDefinitionCreate,
    ScheduleDefinitionUpdate,
    TriggerSpec,
    WeatherPayload,
)
from .scheduler_responses import ActiveJobInfo, DispatchResult, SchedulerStatus
from .weather_model import WeatherSnapshot

__all__ = [
    "ActiveJobInfo",
    "CronTriggerSpec",
    "DispatchResult",
    "ExecutionResult",
    "FixedInstantTrigger",
    "NotificationPayload",
    "Payload",
    "PromptPayload",
    "RecurrenceSettings",
    "ScheduleDefinition",
    "ScheduleDefinitionCreate",
    "ScheduleDefinitionUpdate",
    "SchedulerStatus",
    "TRIGGER_AFFECTING_FIELDS",
    "TriggerSpec",
    "WeatherPayload",
    "WeatherSnapshot",
]
