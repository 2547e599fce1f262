"""
Typed response models for scheduler introspection.

Registry state is in-memory only; these dataclasses are snapshots of it
taken for status reporting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class ActiveJobInfo:
    """Live timers currently representing one definition."""

    definition_id: str
    timer_ids: List[str] = field(default_factory=list)
    next_fire_times: List[Optional[datetime]] = field(default_factory=list)

    @property
    def timer_count(self) -> int:
        return len(self.timer_ids)

    @property
    def next_fire_time(self) -> Optional[datetime]:
        """Earliest upcoming fire time across all timers."""
        upcoming = [t for t in self.next_fire_times if t is not None]
        return min(upcoming) if upcoming else None


@dataclass
class SchedulerStatus:
    """Overall scheduler status."""

    running: bool = False
    active_definitions: int = 0
    live_timers: int = 0
    jobs: List[ActiveJobInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "active_definitions": self.active_definitions,
            "live_timers": self.live_timers,
            "jobs": [
                {
                    "definition_id": job.definition_id,
                    "timer_ids": list(job.timer_ids),
                    "next_fire_times": [
                        t.isoformat() if t else None for t in job.next_fire_times
                    ],
                }
                for job in self.jobs
            ],
        }


@dataclass
class DispatchResult:
    """Outcome of one dispatch."""

    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "DispatchResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "DispatchResult":
        return cls(success=False, error=error)
