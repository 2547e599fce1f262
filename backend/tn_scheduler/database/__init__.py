from .execution_result_operations import ExecutionResultOperations
from .json_store import JsonArrayFile
from .schedule_definition_operations import ScheduleDefinitionOperations
from .weather_operations import WeatherSnapshotOperations

__all__ = [
    "ExecutionResultOperations",
    "JsonArrayFile",
    "ScheduleDefinitionOperations",
    "WeatherSnapshotOperations",
]
