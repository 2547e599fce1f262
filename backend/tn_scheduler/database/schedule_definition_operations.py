# backend/tn_scheduler/database/schedule_definition_operations.py
"""Schedule definition persistence on top of a JSON record file."""

from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from ..enums import DefinitionKind, DefinitionStatus, LogEmoji, LoggerName, LogSource
from ..exceptions import NotFoundError
from ..models.schedule_definition_model import (
    ScheduleDefinition,
    ScheduleDefinitionCreate,
)
from ..services.logger import get_service_logger
from ..utils.time_utils import utc_now
from .json_store import JsonArrayFile, Record

store_logger = get_service_logger(LoggerName.DEFINITION_STORE, LogSource.DATABASE)


def _index_of(records: List[Record], definition_id: str) -> Optional[int]:
    for index, record in enumerate(records):
        if record.get("id") == definition_id:
            return index
    return None


class ScheduleDefinitionOperations:
    """
    CRUD operations for schedule definitions.

    Records that no longer validate are logged and skipped by the list
    operations so one damaged entry cannot hide the rest.
    """

    def __init__(self, store: JsonArrayFile) -> None:
        self.store = store

    def _parse(self, record: Record) -> Optional[ScheduleDefinition]:
        try:
            return ScheduleDefinition.model_validate(record)
        except PydanticValidationError as e:
            store_logger.warning(
                f"Skipping unreadable definition {record.get('id', '?')}: "
                f"{e.error_count()} validation error(s)"
            )
            return None

    def get_all(self) -> List[ScheduleDefinition]:
        definitions = []
        for record in self.store.read_all():
            definition = self._parse(record)
            if definition is not None:
                definitions.append(definition)
        return definitions

    def get_raw_records(self) -> List[Record]:
        """Unvalidated records, used by startup recovery to report bad entries."""
        return self.store.read_all()

    def get_by_id(self, definition_id: str) -> Optional[ScheduleDefinition]:
        for record in self.store.read_all():
            if record.get("id") == definition_id:
                return self._parse(record)
        return None

    def get_pending_one_shots(self) -> List[ScheduleDefinition]:
        return [
            d
            for d in self.get_all()
            if d.kind == DefinitionKind.ONE_SHOT_WITH_RECURRENCE
            and d.status == DefinitionStatus.PENDING
        ]

    def get_enabled_cron(self) -> List[ScheduleDefinition]:
        return [
            d
            for d in self.get_all()
            if d.kind == DefinitionKind.CRON_RECURRING and d.enabled
        ]

    def create(
        self, data: ScheduleDefinitionCreate, **overrides: Any
    ) -> ScheduleDefinition:
        """
        Persist a new definition with a fresh id and timestamps.

        Args:
            data: Validated create model
            overrides: Stored fields set directly (e.g. ``last_fired_at``)
        """
        now = utc_now()
        definition = ScheduleDefinition.model_validate(
            {
                **data.model_dump(),
                "id": uuid4().hex,
                "status": DefinitionStatus.PENDING,
                "created_at": now,
                "updated_at": now,
                **overrides,
            }
        )
        self.store.append(definition.to_record())
        store_logger.debug(f"Created definition {definition.id}", emoji=LogEmoji.SUCCESS)
        return definition

    def update(
        self, definition_id: str, changes: Dict[str, Any], strict: bool = False
    ) -> Optional[ScheduleDefinition]:
        """
        Merge ``changes`` into the stored record and persist the whole record.

        The merged record is validated before anything is written, so an
        invalid change leaves the file untouched.

        Returns:
            The updated definition, or None if the id is unknown

        Raises:
            NotFoundError: Unknown id and ``strict`` is set
            pydantic.ValidationError: The merged record is invalid
        """

        def mutate(records: List[Record]) -> Optional[ScheduleDefinition]:
            index = _index_of(records, definition_id)
            if index is None:
                return None
            merged = {**records[index], **changes, "id": definition_id}
            merged["updated_at"] = utc_now()
            updated = ScheduleDefinition.model_validate(merged)
            records[index] = updated.to_record()
            return updated

        with self.store.locked():
            if _index_of(self.store.read_all(), definition_id) is None:
                if strict:
                    raise NotFoundError(f"Definition {definition_id} not found")
                return None
            return self.store.modify(mutate)

    def delete(self, definition_id: str) -> bool:
        def mutate(records: List[Record]) -> bool:
            index = _index_of(records, definition_id)
            if index is None:
                return False
            del records[index]
            return True

        deleted = self.store.modify(mutate)
        if deleted:
            store_logger.debug(f"Deleted definition {definition_id}", emoji=LogEmoji.CLEANUP)
        return deleted
