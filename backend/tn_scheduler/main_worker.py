#!/usr/bin/env python3
"""
Scheduling engine worker process.

Builds the record stores, the delivery services and the SchedulerWorker,
then keeps the event loop alive until SIGINT or SIGTERM.
"""

import asyncio
import signal
from typing import Optional

from .config import Settings, get_settings
from .database import (
    ExecutionResultOperations,
    JsonArrayFile,
    ScheduleDefinitionOperations,
    WeatherSnapshotOperations,
)
from .enums import LogEmoji, LoggerName, LogSource
from .services.completion_service import CompletionService
from .services.logger import configure_logging, get_service_logger
from .services.notification_service import NotificationService
from .services.scheduling.dispatcher import Dispatcher
from .services.weather.service import WeatherService
from .workers.scheduler_worker import SchedulerWorker

system_logger = get_service_logger(LoggerName.SYSTEM, LogSource.SYSTEM)


def build_worker(settings: Settings) -> SchedulerWorker:
    """Wire stores and services into a SchedulerWorker."""
    settings.ensure_directories()

    definition_ops = ScheduleDefinitionOperations(JsonArrayFile(settings.definitions_file))
    result_ops = ExecutionResultOperations(JsonArrayFile(settings.execution_results_file))
    snapshot_ops = WeatherSnapshotOperations(JsonArrayFile(settings.weather_snapshots_file))

    dispatcher = Dispatcher(
        NotificationService(settings),
        CompletionService(settings, result_ops),
        WeatherService(settings, snapshot_ops),
    )
    return SchedulerWorker(settings, definition_ops, result_ops, snapshot_ops, dispatcher)


async def main(settings: Optional[Settings] = None) -> None:
    """
    Main async entry point.

    1. Configures logging
    2. Builds and starts the SchedulerWorker (recovery runs here)
    3. Waits for a shutdown signal, then stops the worker
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_file)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _signal_handler(signum: int) -> None:
        system_logger.info(
            f"Received signal {signum}, shutting down gracefully...",
            emoji=LogEmoji.SHUTDOWN,
        )
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, _signal_handler, signum)

    worker = build_worker(settings)
    try:
        await worker.start()
        system_logger.info("Scheduler worker started successfully", emoji=LogEmoji.SUCCESS)
        await stop_event.wait()
    finally:
        system_logger.info("Worker shutting down...", emoji=LogEmoji.SHUTDOWN)
        await worker.stop()


def run() -> None:
    """Console-script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        system_logger.info("Application interrupted by user")


if __name__ == "__main__":
    run()
