"""Weather snapshot persistence."""

from datetime import timedelta
from typing import List, Optional

from ..enums import LogEmoji, LoggerName, LogSource
from ..models.weather_model import WeatherSnapshot
from ..services.logger import get_service_logger
from ..utils.time_utils import ensure_utc, parse_flexible_datetime, utc_now
from .json_store import JsonArrayFile, Record

store_logger = get_service_logger(LoggerName.DEFINITION_STORE, LogSource.DATABASE)


class WeatherSnapshotOperations:
    """Operations for the weather snapshot file."""

    def __init__(self, store: JsonArrayFile) -> None:
        self.store = store

    def add_snapshot(self, snapshot: WeatherSnapshot) -> WeatherSnapshot:
        self.store.append(snapshot.model_dump(mode="json"))
        return snapshot

    def get_latest_for_location(
        self, location_id: str, include_errors: bool = False
    ) -> Optional[WeatherSnapshot]:
        """Most recent snapshot for a location, skipping failed fetches by default."""
        candidates = [
            WeatherSnapshot.model_validate(record)
            for record in self.store.read_all()
            if record.get("location_id") == location_id
            and (include_errors or not record.get("error"))
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.fetched_at)

    def cleanup_older_than(self, days: int) -> int:
        cutoff = utc_now() - timedelta(days=days)

        def mutate(records: List[Record]) -> int:
            kept = [
                r
                for r in records
                if ensure_utc(parse_flexible_datetime(r["fetched_at"])) >= cutoff
            ]
            removed = len(records) - len(kept)
            records[:] = kept
            return removed

        removed = self.store.modify(mutate)
        if removed:
            store_logger.info(
                f"Removed {removed} weather snapshots older than {days} days",
                emoji=LogEmoji.CLEANUP,
            )
        return removed
