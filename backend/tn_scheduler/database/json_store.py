# backend/tn_scheduler/database/json_store.py
"""
Flat JSON-array record files.

Each file holds a single JSON array of objects. Every public operation runs
under one process-wide re-entrant lock, so a read-modify-write sequence is
never interleaved with another writer in the same process.
"""

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Union

from ..enums import LogEmoji, LoggerName, LogSource
from ..exceptions import StorageError
from ..services.logger import get_service_logger

store_logger = get_service_logger(LoggerName.DEFINITION_STORE, LogSource.DATABASE)

Record = Dict[str, Any]

# Shared by every JsonArrayFile in the process
_STORE_LOCK = threading.RLock()


class JsonArrayFile:
    """One JSON file containing a flat array of records."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the store lock across several reads and writes."""
        with _STORE_LOCK:
            yield

    def read_all(self) -> List[Record]:
        """Return every record; a missing file is created as ``[]``."""
        with _STORE_LOCK:
            if not self.path.exists():
                self.write_all([])
                return []
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StorageError(f"Failed to read {self.path}: {e}") from e
            if not isinstance(data, list):
                raise StorageError(f"{self.path} does not contain a JSON array")
            return data

    def write_all(self, records: List[Record]) -> None:
        """Replace the file contents atomically."""
        with _STORE_LOCK:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(records, f, ensure_ascii=False, indent=2)
                    os.replace(tmp_path, self.path)
                except BaseException:
                    if os.path.exists(tmp_path):
                        os.unlink(tmp_path)
                    raise
            except OSError as e:
                store_logger.error(f"Failed to write {self.path}", exception=e)
                raise StorageError(f"Failed to write {self.path}: {e}") from e

    def modify(self, mutate: Callable[[List[Record]], Any]) -> Any:
        """
        Run one read-modify-write cycle.

        ``mutate`` receives the current records, may change the list in place
        and returns a value handed back to the caller. The file is rewritten
        only after ``mutate`` returns without raising.
        """
        with _STORE_LOCK:
            records = self.read_all()
            result = mutate(records)
            self.write_all(records)
            return result

    def append(self, record: Record) -> None:
        self.modify(lambda records: records.append(record))

    def clear(self) -> None:
        store_logger.debug(f"Clearing {self.path.name}", emoji=LogEmoji.CLEANUP)
        self.write_all([])
