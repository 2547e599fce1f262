"""
Centralized Logger Service for the scheduling engine.

Wraps loguru with:
- Console output with emoji support
- Optional file logging with rotation
- Per-service loggers bound to a LoggerName / LogSource pair
"""

import sys
from typing import Optional, Union

from loguru import logger

from ...enums import LogEmoji, LoggerName, LogLevel, LogSource

CONSOLE_FORMAT = (
    "<dim>[{time:YYYY-MM-DD HH:mm:ss}]</dim> "
    "<level>[{level: ^8}]</level> "
    "{extra[source]: ^9} [{extra[logger_name]}] {message}"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[source]} | {extra[logger_name]} | {message}"
)
FILE_ROTATION = "10 MB"
FILE_RETENTION = "14 days"

_configured = False


def configure_logging(
    level: Union[LogLevel, str] = LogLevel.INFO, log_file: Optional[str] = None
) -> None:
    """
    Install console and optional file sinks. Safe to call more than once;
    only the first call takes effect.

    Args:
        level: Minimum level for both sinks
        log_file: Path of a rotating log file (optional)
    """
    global _configured
    if _configured:
        return

    level_name = level.value if isinstance(level, LogLevel) else str(level).upper()

    logger.remove()
    logger.configure(extra={"source": LogSource.SYSTEM.value, "logger_name": "-"})
    logger.add(
        sys.stderr,
        level=level_name,
        format=CONSOLE_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    if log_file:
        logger.add(
            log_file,
            level=level_name,
            format=FILE_FORMAT,
            rotation=FILE_ROTATION,
            retention=FILE_RETENTION,
            encoding="utf-8",
            enqueue=True,
        )
    _configured = True


class ServiceLogger:
    """
    Logger pre-bound to one service.

    Emoji priority system (highest to lowest):
    1. Direct: emoji passed to the log method call
    2. Instance-set: default emoji given when the logger was created
    3. Fallback: emoji derived from the log level
    """

    def __init__(
        self,
        logger_name: LoggerName,
        source: LogSource = LogSource.SYSTEM,
        default_emoji: Optional[LogEmoji] = None,
    ):
        self.logger_name = logger_name
        self.source = source
        self.default_emoji = default_emoji
        self._logger = logger.bind(logger_name=logger_name.value, source=source.value)

    def _resolve_emoji(
        self, method_emoji: Optional[LogEmoji], fallback_emoji: LogEmoji
    ) -> LogEmoji:
        if method_emoji is not None:
            return method_emoji
        if self.default_emoji is not None:
            return self.default_emoji
        return fallback_emoji

    def _format(self, message: str, emoji: LogEmoji) -> str:
        return f"{emoji.value} {message}"

    def error(
        self,
        message: str,
        exception: Optional[BaseException] = None,
        emoji: Optional[LogEmoji] = None,
    ) -> None:
        text = self._format(message, self._resolve_emoji(emoji, LogEmoji.ERROR))
        if exception is not None:
            text = f"{text}: {exception}"
        # opt(depth=1) attributes the record to the caller, not this wrapper
        self._logger.opt(depth=1).error(text)

    def warning(self, message: str, emoji: Optional[LogEmoji] = None) -> None:
        self._logger.opt(depth=1).warning(
            self._format(message, self._resolve_emoji(emoji, LogEmoji.WARNING))
        )

    def info(self, message: str, emoji: Optional[LogEmoji] = None) -> None:
        self._logger.opt(depth=1).info(
            self._format(message, self._resolve_emoji(emoji, LogEmoji.INFO))
        )

    def debug(self, message: str, emoji: Optional[LogEmoji] = None) -> None:
        self._logger.opt(depth=1).debug(
            self._format(message, self._resolve_emoji(emoji, LogEmoji.DEBUG))
        )


def get_service_logger(
    logger_name: LoggerName,
    source: LogSource = LogSource.SYSTEM,
    default_emoji: Optional[LogEmoji] = None,
) -> ServiceLogger:
    """
    Factory function to create a pre-configured logger for a specific service.

    Example:
        from ..services.logger import get_service_logger
        from ..enums import LoggerName, LogSource

        dispatch_logger = get_service_logger(LoggerName.DISPATCHER, LogSource.DISPATCH)
        dispatch_logger.error("Webhook failed")  # Uses LogEmoji.ERROR (fallback)
    """
    return ServiceLogger(logger_name, source, default_emoji)
