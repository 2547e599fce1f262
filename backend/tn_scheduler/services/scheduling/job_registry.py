# backend/tn_scheduler/services/scheduling/job_registry.py
"""
Job Registry - in-memory map from definition id to live timer handles.

Nothing here is persisted; the registry is rebuilt from the definitions
file at startup.
"""

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from ...enums import LogEmoji, LoggerName, LogSource
from ...models.scheduler_responses import ActiveJobInfo
from ..logger import get_service_logger

registry_logger = get_service_logger(LoggerName.JOB_REGISTRY, LogSource.SCHEDULER)


class CancellableTimer(Protocol):
    """A live timer; ``cancel`` must be safe to call more than once."""

    timer_id: str

    @property
    def next_fire_time(self) -> Optional[datetime]: ...

    def cancel(self) -> None: ...


class JobRegistry:
    """
    Per-definition timer handles with atomic replace.

    All methods are synchronous; callers on the event loop never observe a
    half-replaced entry.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, List[CancellableTimer]] = {}

    def set(self, definition_id: str, handles: Sequence[CancellableTimer]) -> None:
        """Cancel any handles already held for the id, then install ``handles``."""
        self._cancel_handles(definition_id, self._entries.pop(definition_id, []))
        if handles:
            self._entries[definition_id] = list(handles)

    def cancel(self, definition_id: str) -> bool:
        """Cancel and drop the entry; returns False when there was none."""
        handles = self._entries.pop(definition_id, None)
        if handles is None:
            return False
        self._cancel_handles(definition_id, handles)
        registry_logger.debug(
            f"Cancelled {len(handles)} timer(s) for {definition_id}",
            emoji=LogEmoji.CANCELED,
        )
        return True

    def get(self, definition_id: str) -> Optional[List[CancellableTimer]]:
        handles = self._entries.get(definition_id)
        return list(handles) if handles is not None else None

    def list(self) -> List[str]:
        return list(self._entries.keys())

    def clear(self) -> None:
        for definition_id in self.list():
            self.cancel(definition_id)

    def describe(self, definition_id: str) -> Optional[ActiveJobInfo]:
        handles = self._entries.get(definition_id)
        if handles is None:
            return None
        return ActiveJobInfo(
            definition_id=definition_id,
            timer_ids=[h.timer_id for h in handles],
            next_fire_times=[h.next_fire_time for h in handles],
        )

    @property
    def timer_count(self) -> int:
        return sum(len(handles) for handles in self._entries.values())

    def __contains__(self, definition_id: str) -> bool:
        return definition_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _cancel_handles(
        self, definition_id: str, handles: Sequence[CancellableTimer]
    ) -> None:
        for handle in handles:
            try:
                handle.cancel()
            except Exception as e:
                registry_logger.warning(
                    f"Failed to cancel timer {handle.timer_id} of {definition_id}: {e}"
                )
