# backend/tn_scheduler/services/weather/service.py
"""
Weather polling service.

A poll of one location queries every upstream source and stores one
WeatherSnapshot per source. Failed sources are stored too, with ``error``
set, so the snapshot file shows gaps as well as data.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import requests

from ...config import Settings
from ...constants import WEATHER_FORECAST_DAYS, WEATHER_HOURLY_POINTS
from ...database.weather_operations import WeatherSnapshotOperations
from ...enums import LogEmoji, LoggerName, LogSource, WeatherApiSource
from ...exceptions import ConfigurationError, DeliveryError
from ...models.schedule_definition_model import WeatherPayload
from ...models.weather_model import WeatherSnapshot
from ...utils.time_utils import UTC_TIMEZONE, utc_now
from ..logger import get_service_logger

weather_logger = get_service_logger(
    LoggerName.WEATHER_SERVICE, LogSource.DISPATCH, default_emoji=LogEmoji.WEATHER
)


def extract_hourly_temperature(
    data: Dict[str, Any], now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Hourly temperatures from a weatherapi.com forecast, from one hour ago up
    to 24 hours ahead.

    Forecast hour times are local to the location; ``localtime_epoch`` is
    used to align them with ``now``.
    """
    now = now or utc_now()
    location = data.get("location") or {}
    offset = timedelta(0)
    if "localtime_epoch" in location and "localtime" in location:
        local_now = datetime.strptime(location["localtime"], "%Y-%m-%d %H:%M")
        utc_local = datetime.fromtimestamp(location["localtime_epoch"], UTC_TIMEZONE)
        offset = local_now - utc_local.replace(tzinfo=None, second=0, microsecond=0)

    hourly = []
    for day in (data.get("forecast") or {}).get("forecastday", []):
        for hour in day.get("hour", []):
            local_time = datetime.strptime(hour["time"], "%Y-%m-%d %H:%M")
            hour_utc = (local_time - offset).replace(tzinfo=UTC_TIMEZONE)
            diff = hour_utc - now
            if timedelta(hours=-1) <= diff <= timedelta(hours=24):
                hourly.append(
                    {
                        "time": hour["time"],
                        "temperature": hour.get("temp_c"),
                        "condition": (hour.get("condition") or {}).get("text"),
                    }
                )
    return hourly[:WEATHER_HOURLY_POINTS]


def extract_hourly_rainfall(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Rainfall observations/forecasts from a Yahoo weather place response."""
    try:
        weather_list = data["Feature"][0]["Property"]["WeatherList"]["Weather"]
    except (KeyError, IndexError, TypeError):
        return []
    return [
        {
            "time": entry.get("Date"),
            "rainfall": entry.get("Rainfall", 0),
            "condition": entry.get("Type", "unknown"),
        }
        for entry in weather_list[:WEATHER_HOURLY_POINTS]
    ]


class WeatherService:
    """Fetches and records weather for polling definitions."""

    def __init__(self, settings: Settings, snapshot_ops: WeatherSnapshotOperations):
        self.settings = settings
        self.snapshot_ops = snapshot_ops

    def fetch_from_weatherapi(self, payload: WeatherPayload) -> Dict[str, Any]:
        if not self.settings.weather_api_key:
            raise ConfigurationError("WeatherAPI key not configured")
        data = self._get_json(
            self.settings.weather_api_url,
            {
                "key": self.settings.weather_api_key,
                "q": f"{payload.latitude},{payload.longitude}",
                "days": WEATHER_FORECAST_DAYS,
                "aqi": "yes",
                "alerts": "yes",
            },
        )
        try:
            data["hourly_temperature"] = extract_hourly_temperature(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DeliveryError(f"Unexpected WeatherAPI response: {e}") from e
        return data

    def fetch_from_yahoo(self, payload: WeatherPayload) -> Dict[str, Any]:
        if not self.settings.yahoo_weather_api_key:
            raise ConfigurationError("Yahoo Weather API key not configured")
        data = self._get_json(
            self.settings.yahoo_weather_api_url,
            {
                "appid": self.settings.yahoo_weather_api_key,
                "coordinates": f"{payload.longitude},{payload.latitude}",
                "output": "json",
            },
        )
        try:
            data["hourly_rainfall"] = extract_hourly_rainfall(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DeliveryError(f"Unexpected Yahoo weather response: {e}") from e
        return data

    def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = requests.get(
                url, params=params, timeout=self.settings.weather_timeout_seconds
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise DeliveryError(f"Weather request failed: {e}") from e
        except ValueError as e:
            raise DeliveryError(f"Weather response was not JSON: {e}") from e

    def _sources(self) -> Dict[WeatherApiSource, Callable[[WeatherPayload], Dict[str, Any]]]:
        return {
            WeatherApiSource.WEATHERAPI: self.fetch_from_weatherapi,
            WeatherApiSource.YAHOO: self.fetch_from_yahoo,
        }

    def fetch_for_location(
        self, payload: WeatherPayload, definition_id: Optional[str] = None
    ) -> List[WeatherSnapshot]:
        """
        Poll every source in parallel and store one snapshot per source.

        Raises:
            DeliveryError: Every source failed
        """
        sources = self._sources()
        with ThreadPoolExecutor(max_workers=len(sources)) as pool:
            futures = {
                source: pool.submit(fetch, payload) for source, fetch in sources.items()
            }

        snapshots = []
        for source, future in futures.items():
            try:
                snapshot = WeatherSnapshot(
                    definition_id=definition_id,
                    location_id=payload.location_id,
                    api_source=source,
                    data=future.result(),
                )
            except (ConfigurationError, DeliveryError) as e:
                weather_logger.warning(
                    f"{source.value} fetch failed for {payload.location_id}: {e}"
                )
                snapshot = WeatherSnapshot(
                    definition_id=definition_id,
                    location_id=payload.location_id,
                    api_source=source,
                    error=str(e),
                )
            snapshots.append(self.snapshot_ops.add_snapshot(snapshot))

        succeeded = [s for s in snapshots if not s.is_error]
        if not succeeded:
            errors = "; ".join(f"{s.api_source.value}: {s.error}" for s in snapshots)
            raise DeliveryError(f"All weather sources failed for {payload.location_id} ({errors})")

        weather_logger.info(
            f"Weather fetched for {payload.label or payload.location_id} "
            f"({len(succeeded)}/{len(snapshots)} sources)"
        )
        return snapshots
