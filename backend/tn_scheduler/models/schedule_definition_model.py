# backend/tn_scheduler/models/schedule_definition_model.py
"""
Schedule Definition Models - Pydantic models for persisted schedule definitions.

A definition is the durable description of something to run later; live
timers are derived from it at runtime and never persisted.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import DEFAULT_TIMEZONE
from ..enums import (
    DefinitionKind,
    DefinitionStatus,
    NotificationChannel,
    RecurrenceInterval,
)
from ..utils.cron_utils import split_cron_value, validate_cron_expression
from ..utils.time_utils import ensure_utc, parse_flexible_datetime


# ════════════════════════════════════════════════════════════════════════════════
#                                    TRIGGERS
# ════════════════════════════════════════════════════════════════════════════════


class FixedInstantTrigger(BaseModel):
    """Fire once at ``fire_at``."""

    type: Literal["fixed_instant"] = "fixed_instant"
    fire_at: datetime = Field(..., description="Instant the definition fires at")

    @field_validator("fire_at", mode="before")
    @classmethod
    def parse_fire_at(cls, v: Any) -> datetime:
        return parse_flexible_datetime(v)


class CronTriggerSpec(BaseModel):
    """Fire on every match of any of ``expressions``; one timer per expression."""

    type: Literal["cron"] = "cron"
    expressions: List[str] = Field(..., min_length=1)

    @field_validator("expressions", mode="before")
    @classmethod
    def normalize_expressions(cls, v: Any) -> List[str]:
        return split_cron_value(v)

    @field_validator("expressions")
    @classmethod
    def validate_expressions(cls, v: List[str]) -> List[str]:
        return [validate_cron_expression(expr) for expr in v]


TriggerSpec = Annotated[
    Union[FixedInstantTrigger, CronTriggerSpec], Field(discriminator="type")
]


# ════════════════════════════════════════════════════════════════════════════════
#                                    PAYLOADS
# ════════════════════════════════════════════════════════════════════════════════


class NotificationPayload(BaseModel):
    """Reminder delivered over a notification channel."""

    type: Literal["notification"] = "notification"
    title: str = Field(..., min_length=1, max_length=200)
    message: Optional[str] = Field(default=None, max_length=4000)
    channel: NotificationChannel = NotificationChannel.WEBHOOK
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class PromptPayload(BaseModel):
    """Prompt executed against the text-completion service."""

    type: Literal["prompt"] = "prompt"
    prompt: str = Field(..., min_length=1)
    category: str = "general"
    tags: List[str] = Field(default_factory=list)


class WeatherPayload(BaseModel):
    """Location whose weather is polled."""

    type: Literal["weather"] = "weather"
    location_id: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    label: Optional[str] = None


Payload = Annotated[
    Union[NotificationPayload, PromptPayload, WeatherPayload],
    Field(discriminator="type"),
]


# ════════════════════════════════════════════════════════════════════════════════
#                                   RECURRENCE
# ════════════════════════════════════════════════════════════════════════════════


class RecurrenceSettings(BaseModel):
    """Rule deriving the next occurrence of a one-shot definition."""

    interval: RecurrenceInterval
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = Field(default=None, ge=1)
    current_occurrence: int = Field(default=1, ge=1)

    @field_validator("end_date", mode="before")
    @classmethod
    def parse_end_date(cls, v: Any) -> Optional[datetime]:
        return parse_flexible_datetime(v) if v else None

    @model_validator(mode="after")
    def check_occurrence_bound(self) -> "RecurrenceSettings":
        if self.max_occurrences is not None and self.current_occurrence > self.max_occurrences:
            raise ValueError("current_occurrence cannot exceed max_occurrences")
        return self


# ════════════════════════════════════════════════════════════════════════════════
#                                  DEFINITIONS
# ════════════════════════════════════════════════════════════════════════════════


def _coerce_legacy_trigger(data: Any) -> Any:
    """Accept a bare cron string / list where a trigger spec is expected."""
    if isinstance(data, dict):
        trigger = data.get("trigger")
        if isinstance(trigger, (str, list)):
            data = {**data, "trigger": {"type": "cron", "expressions": trigger}}
    return data


class ScheduleDefinitionBase(BaseModel):
    """Fields shared by create requests and stored definitions."""

    kind: DefinitionKind
    name: Optional[str] = Field(default=None, max_length=200)
    trigger: TriggerSpec
    payload: Payload
    enabled: bool = Field(
        default=True, description="Whether live timers exist (cron definitions)"
    )
    recurrence: Optional[RecurrenceSettings] = None
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="IANA zone for naive inputs, cron evaluation and calendar recurrence",
    )

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_trigger(cls, data: Any) -> Any:
        return _coerce_legacy_trigger(data)

    @model_validator(mode="after")
    def check_kind_consistency(self):
        if self.kind == DefinitionKind.ONE_SHOT_WITH_RECURRENCE:
            if not isinstance(self.trigger, FixedInstantTrigger):
                raise ValueError("one-shot definitions require a fixed_instant trigger")
            if not isinstance(self.payload, NotificationPayload):
                raise ValueError("one-shot definitions require a notification payload")
        else:
            if not isinstance(self.trigger, CronTriggerSpec):
                raise ValueError("cron definitions require a cron trigger")
            if isinstance(self.payload, NotificationPayload):
                raise ValueError("cron definitions require a prompt or weather payload")
            if self.recurrence is not None:
                raise ValueError("recurrence applies to one-shot definitions only")

        # Naive instants are expressed in the definition's own zone
        if isinstance(self.trigger, FixedInstantTrigger):
            self.trigger.fire_at = ensure_utc(self.trigger.fire_at, self.timezone)
        if self.recurrence is not None and self.recurrence.end_date is not None:
            self.recurrence.end_date = ensure_utc(self.recurrence.end_date, self.timezone)
        return self


class ScheduleDefinitionCreate(ScheduleDefinitionBase):
    """Model for creating a new schedule definition."""

    pass


class ScheduleDefinitionUpdate(BaseModel):
    """Partial update; unset fields keep their stored value."""

    name: Optional[str] = None
    trigger: Optional[TriggerSpec] = None
    payload: Optional[Payload] = None
    enabled: Optional[bool] = None
    recurrence: Optional[RecurrenceSettings] = None
    timezone: Optional[str] = None
    status: Optional[DefinitionStatus] = None

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_trigger(cls, data: Any) -> Any:
        return _coerce_legacy_trigger(data)

    def changes(self) -> Dict[str, Any]:
        """
        Explicitly-set fields, ready to merge into a stored record.

        Only top-level fields are filtered; a nested trigger, payload or
        recurrence is dumped whole so its ``type`` tag and defaults survive.
        """
        return self.model_dump(mode="json", include=set(self.model_fields_set))


class ScheduleDefinition(ScheduleDefinitionBase):
    """Complete schedule definition as stored in the definitions file."""

    id: str
    status: DefinitionStatus = DefinitionStatus.PENDING
    last_fired_at: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_one_shot(self) -> bool:
        return self.kind == DefinitionKind.ONE_SHOT_WITH_RECURRENCE

    @property
    def is_cron(self) -> bool:
        return self.kind == DefinitionKind.CRON_RECURRING

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict for the record file."""
        return self.model_dump(mode="json")


# Fields whose change forces the live timers to be rebuilt
TRIGGER_AFFECTING_FIELDS = frozenset(
    {"trigger", "enabled", "recurrence", "timezone", "status"}
)
