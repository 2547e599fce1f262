# backend/tn_scheduler/services/scheduling/dispatcher.py
"""
Dispatcher - runs the side effect of one firing.

Transports are blocking (requests, smtplib); they run in the default
executor so the event loop keeps firing other timers meanwhile. Failures
come back as DispatchResult values, never as exceptions.
"""

import asyncio
from datetime import datetime
from functools import partial
from typing import Any, Callable, Optional

from ...enums import LogEmoji, LoggerName, LogSource, NotificationChannel, ScheduledBy
from ...exceptions import SchedulerEngineError
from ...models.schedule_definition_model import (
    FixedInstantTrigger,
    NotificationPayload,
    PromptPayload,
    ScheduleDefinition,
    WeatherPayload,
)
from ...models.scheduler_responses import DispatchResult
from ..completion_service import CompletionService
from ..logger import get_service_logger
from ..notification_service import NotificationMessage, NotificationService
from ..weather.service import WeatherService

dispatch_logger = get_service_logger(LoggerName.DISPATCHER, LogSource.DISPATCH)

TEST_NOTIFICATION_TITLE = "Test notification"
TEST_NOTIFICATION_MESSAGE = "Notification delivery is working."


class Dispatcher:
    """Routes a definition's payload to the service that executes it."""

    def __init__(
        self,
        notification_service: NotificationService,
        completion_service: Optional[CompletionService] = None,
        weather_service: Optional[WeatherService] = None,
    ):
        self.notification_service = notification_service
        self.completion_service = completion_service
        self.weather_service = weather_service

    async def run_in_executor(self, func: Callable, *args, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def dispatch(
        self, definition: ScheduleDefinition, fire_time: Optional[datetime] = None
    ) -> DispatchResult:
        """Execute the payload once; returns success or failure with the error text."""
        payload = definition.payload
        try:
            if isinstance(payload, NotificationPayload):
                await self._dispatch_notification(definition, payload, fire_time)
            elif isinstance(payload, PromptPayload):
                await self._dispatch_prompt(definition, payload)
            elif isinstance(payload, WeatherPayload):
                await self._dispatch_weather(definition, payload)
            else:
                return DispatchResult.failed(f"Unsupported payload: {type(payload).__name__}")
        except SchedulerEngineError as e:
            dispatch_logger.error(f"Dispatch failed for {definition.id}", exception=e)
            return DispatchResult.failed(str(e))
        except Exception as e:
            dispatch_logger.error(
                f"Unexpected dispatch error for {definition.id}", exception=e
            )
            return DispatchResult.failed(f"{type(e).__name__}: {e}")
        return DispatchResult.ok()

    async def _dispatch_notification(
        self,
        definition: ScheduleDefinition,
        payload: NotificationPayload,
        fire_time: Optional[datetime],
    ) -> None:
        notify_at = fire_time
        if notify_at is None and isinstance(definition.trigger, FixedInstantTrigger):
            notify_at = definition.trigger.fire_at
        notification = NotificationMessage(
            title=payload.title,
            message=payload.message,
            notify_at=notify_at,
            timezone=definition.timezone,
            category=payload.category,
            tags=payload.tags,
            definition_id=definition.id,
        )
        dispatch_logger.info(
            f"Sending {payload.channel.value} notification for {definition.id}: {payload.title}",
            emoji=LogEmoji.NOTIFICATION,
        )
        await self.run_in_executor(self.notification_service.send, payload.channel, notification)

    async def _dispatch_prompt(
        self, definition: ScheduleDefinition, payload: PromptPayload
    ) -> None:
        if self.completion_service is None:
            raise SchedulerEngineError("Completion service not available")
        await self.run_in_executor(
            self.completion_service.execute_prompt,
            payload.prompt,
            category=payload.category,
            tags=payload.tags,
            scheduled_by=ScheduledBy.SCHEDULED,
            definition_id=definition.id,
        )

    async def _dispatch_weather(
        self, definition: ScheduleDefinition, payload: WeatherPayload
    ) -> None:
        if self.weather_service is None:
            raise SchedulerEngineError("Weather service not available")
        await self.run_in_executor(
            self.weather_service.fetch_for_location, payload, definition_id=definition.id
        )

    async def send_test_notification(
        self, channel: NotificationChannel = NotificationChannel.WEBHOOK
    ) -> DispatchResult:
        """Deliver a canned notification right away; nothing is scheduled or stored."""
        notification = NotificationMessage(
            title=TEST_NOTIFICATION_TITLE, message=TEST_NOTIFICATION_MESSAGE
        )
        try:
            await self.run_in_executor(self.notification_service.send, channel, notification)
        except SchedulerEngineError as e:
            dispatch_logger.warning(f"Test notification over {channel.value} failed: {e}")
            return DispatchResult.failed(str(e))
        dispatch_logger.info(
            f"Test notification sent over {channel.value}", emoji=LogEmoji.SUCCESS
        )
        return DispatchResult.ok()
