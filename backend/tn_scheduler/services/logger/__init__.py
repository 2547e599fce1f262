"""
Centralized Logger Service Module.

Usage:
    from tn_scheduler.services.logger import get_service_logger
    from tn_scheduler.enums import LoggerName, LogSource, LogEmoji

    log = get_service_logger(LoggerName.DISPATCHER, LogSource.DISPATCH)
    log.info("Webhook sent", emoji=LogEmoji.WEBHOOK)
"""

from ...enums import LogEmoji, LoggerName, LogLevel, LogSource
from .logger_service import ServiceLogger, configure_logging, get_service_logger

__all__ = [
    "ServiceLogger",
    "configure_logging",
    "get_service_logger",
    # Enums
    "LogLevel",
    "LogSource",
    "LoggerName",
    "LogEmoji",
]
