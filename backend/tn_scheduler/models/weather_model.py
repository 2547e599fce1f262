# backend/tn_scheduler/models/weather_model.py
"""
Weather snapshot model.

Each poll of a location writes one snapshot per upstream source. A failed
source still produces a snapshot, with ``error`` set and no ``data``.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from ..enums import WeatherApiSource
from ..utils.time_utils import utc_now


class WeatherSnapshot(BaseModel):
    """Weather data fetched from one source for one location"""

    id: str = Field(default_factory=lambda: uuid4().hex)
    definition_id: Optional[str] = Field(None, description="Polling definition id")
    location_id: str
    api_source: WeatherApiSource
    data: Optional[Dict[str, Any]] = Field(None, description="Normalized forecast data")
    error: Optional[str] = Field(None, description="Error message if the fetch failed")
    fetched_at: datetime = Field(default_factory=utc_now)

    @property
    def is_error(self) -> bool:
        return self.error is not None
