# backend/tn_scheduler/database/execution_result_operations.py
"""Execution result persistence."""

from datetime import timedelta
from typing import List, Optional

from ..enums import LogEmoji, LoggerName, LogSource
from ..models.execution_result_model import ExecutionResult
from ..services.logger import get_service_logger
from ..utils.time_utils import ensure_utc, parse_flexible_datetime, utc_now
from .json_store import JsonArrayFile, Record

store_logger = get_service_logger(LoggerName.DEFINITION_STORE, LogSource.DATABASE)


class ExecutionResultOperations:
    """Append-only log of prompt executions with age-based cleanup."""

    def __init__(self, store: JsonArrayFile) -> None:
        self.store = store

    def add_result(self, result: ExecutionResult) -> ExecutionResult:
        self.store.append(result.model_dump(mode="json"))
        return result

    def get_results(
        self, definition_id: Optional[str] = None, limit: int = 50
    ) -> List[ExecutionResult]:
        """Newest results first, optionally filtered by definition."""
        results = [
            ExecutionResult.model_validate(record)
            for record in self.store.read_all()
            if definition_id is None or record.get("definition_id") == definition_id
        ]
        results.sort(key=lambda r: r.created_at, reverse=True)
        return results[:limit]

    def cleanup_older_than(self, days: int) -> int:
        """Delete results created more than ``days`` ago; returns the count removed."""
        cutoff = utc_now() - timedelta(days=days)

        def mutate(records: List[Record]) -> int:
            kept = [
                r
                for r in records
                if ensure_utc(parse_flexible_datetime(r["created_at"])) >= cutoff
            ]
            removed = len(records) - len(kept)
            records[:] = kept
            return removed

        removed = self.store.modify(mutate)
        if removed:
            store_logger.info(
                f"Removed {removed} execution results older than {days} days",
                emoji=LogEmoji.CLEANUP,
            )
        return removed
