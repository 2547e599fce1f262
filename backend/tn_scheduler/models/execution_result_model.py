# backend/tn_scheduler/models/execution_result_model.py
"""
Execution Result Models - one record per prompt execution.

Results are written whether the completion request succeeded or not, and
live independently of the schedule definition that produced them.
"""

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from ..enums import ExecutionStatus, ScheduledBy
from ..utils.time_utils import utc_now


class ExecutionResult(BaseModel):
    """Stored outcome of a single prompt execution"""

    id: str = Field(default_factory=lambda: uuid4().hex)
    definition_id: Optional[str] = Field(
        None, description="Definition that triggered the run (None for manual runs)"
    )
    prompt: str
    response: Optional[str] = None
    model: str
    status: ExecutionStatus
    error_message: Optional[str] = None
    execution_time_ms: int = Field(0, ge=0)
    tokens_used: Optional[int] = Field(None, ge=0)
    category: str = "general"
    tags: List[str] = Field(default_factory=list)
    scheduled_by: ScheduledBy = ScheduledBy.SCHEDULED
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS
