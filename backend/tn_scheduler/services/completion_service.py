# backend/tn_scheduler/services/completion_service.py
"""
Completion Service - runs prompts against the text-completion API.

Each execution is recorded as an ExecutionResult, on success and on error.
A response without text is still a successful execution.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..config import Settings
from ..constants import COMPLETION_NO_TEXT
from ..database.execution_result_operations import ExecutionResultOperations
from ..enums import ExecutionStatus, LogEmoji, LoggerName, LogSource, ScheduledBy
from ..exceptions import ConfigurationError, DeliveryError
from ..models.execution_result_model import ExecutionResult
from .logger import get_service_logger

completion_logger = get_service_logger(
    LoggerName.COMPLETION_SERVICE, LogSource.DISPATCH, default_emoji=LogEmoji.ROBOT
)


def extract_response_text(data: Dict[str, Any]) -> str:
    """First candidate's first text part, or a placeholder when absent."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return COMPLETION_NO_TEXT
    return text or COMPLETION_NO_TEXT


def extract_tokens_used(data: Dict[str, Any]) -> Optional[int]:
    usage = data.get("usageMetadata") or {}
    total = usage.get("totalTokenCount")
    return int(total) if total is not None else None


class CompletionService:
    """Thin client for a generateContent-style completion endpoint."""

    def __init__(self, settings: Settings, result_ops: ExecutionResultOperations):
        self.settings = settings
        self.result_ops = result_ops

    def request_completion(self, prompt: str) -> Tuple[str, Optional[int]]:
        """
        Send one prompt.

        Returns:
            (response text, total tokens used)

        Raises:
            ConfigurationError: No API key configured
            DeliveryError: Transport failure, timeout or non-2xx
        """
        if not self.settings.completion_api_key:
            raise ConfigurationError("Completion API key not configured")

        try:
            response = requests.post(
                self.settings.completion_api_url,
                json={"contents": [{"parts": [{"text": prompt}]}]},
                headers={
                    "Content-Type": "application/json",
                    "X-goog-api-key": self.settings.completion_api_key,
                },
                timeout=self.settings.completion_timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            raise DeliveryError(
                f"Completion request timed out after "
                f"{self.settings.completion_timeout_seconds}s"
            ) from e
        except requests.exceptions.RequestException as e:
            raise DeliveryError(f"Completion request failed: {e}") from e
        except ValueError as e:
            raise DeliveryError(f"Completion response was not JSON: {e}") from e

        return extract_response_text(data), extract_tokens_used(data)

    def execute_prompt(
        self,
        prompt: str,
        category: str = "general",
        tags: Optional[List[str]] = None,
        scheduled_by: ScheduledBy = ScheduledBy.MANUAL,
        definition_id: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Run a prompt and persist the outcome.

        The error result is stored before the exception is re-raised.
        """
        started = time.monotonic()
        try:
            text, tokens = self.request_completion(prompt)
        except (ConfigurationError, DeliveryError) as e:
            result = ExecutionResult(
                definition_id=definition_id,
                prompt=prompt,
                model=self.settings.completion_model,
                status=ExecutionStatus.ERROR,
                error_message=str(e),
                execution_time_ms=int((time.monotonic() - started) * 1000),
                category=category,
                tags=list(tags or []),
                scheduled_by=scheduled_by,
            )
            self.result_ops.add_result(result)
            completion_logger.error(
                f"Prompt execution failed ({scheduled_by.value})", exception=e
            )
            raise

        result = ExecutionResult(
            definition_id=definition_id,
            prompt=prompt,
            response=text,
            model=self.settings.completion_model,
            status=ExecutionStatus.SUCCESS,
            execution_time_ms=int((time.monotonic() - started) * 1000),
            tokens_used=tokens,
            category=category,
            tags=list(tags or []),
            scheduled_by=scheduled_by,
        )
        self.result_ops.add_result(result)
        completion_logger.info(
            f"Prompt executed in {result.execution_time_ms}ms "
            f"({tokens if tokens is not None else '?'} tokens)"
        )
        return result
