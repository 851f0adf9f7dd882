"""
In-memory Persistence Store.

Dict-backed implementation of PersistenceStore for tests, local scripts and
single-process deployments. All mutations run under one lock, which makes
conditional_update an atomic compare-and-set. The live-application check in
create runs under the same lock.
"""

import logging
import threading
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import ValidationError

from domain.aggregates import ENTITY_MODELS, IMMUTABLE_FIELDS, LIVE_APPLICATION_STATUSES, EntityType, utcnow
from domain.errors import Conflict, DuplicateApplication, NotFound, PersistenceError
from domain.repositories import Criteria, Entity, PersistenceStore

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    """Enum members compare by value."""
    return getattr(value, "value", value)


class InMemoryStore(PersistenceStore):
    """Thread-safe in-memory store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[EntityType, Dict[str, Entity]] = {t: {} for t in EntityType}

    def get(self, entity_type: EntityType, entity_id: str) -> Entity:
        with self._lock:
            entity = self._data[entity_type].get(entity_id)
        if entity is None:
            raise NotFound(entity_type, entity_id)
        return entity

    def find_where(self, entity_type: EntityType, criteria: Criteria) -> List[Entity]:
        unknown = set(criteria) - set(ENTITY_MODELS[entity_type].model_fields)
        if unknown:
            raise PersistenceError(f"Unknown {entity_type.value} fields in criteria: {sorted(unknown)}")

        with self._lock:
            entities = list(self._data[entity_type].values())
        return [
            entity for entity in entities
            if all(_plain(getattr(entity, key, None)) == _plain(value) for key, value in criteria.items())
        ]

    def create(self, entity_type: EntityType, fields: Dict[str, Any]) -> Entity:
        fields = dict(fields)
        fields.setdefault("id", uuid4().hex)
        model = ENTITY_MODELS[entity_type]
        try:
            entity = model.model_validate(fields)
        except ValidationError as e:
            raise PersistenceError(f"Invalid {entity_type.value} record: {e}") from e

        with self._lock:
            if entity.id in self._data[entity_type]:
                raise PersistenceError(f"{entity_type.value} {entity.id} already exists")
            if entity_type == EntityType.APPLICATION:
                live = self._live_application(entity)
                if live is not None:
                    raise DuplicateApplication(
                        "Candidate already has an active application for this hiring request",
                        hiring_request_id=entity.hiring_request_id,
                        application_id=live.id,
                    )
            self._data[entity_type][entity.id] = entity

        logger.debug("Created entity", extra={"entity_type": entity_type.value, "entity_id": entity.id})
        return entity

    def _live_application(self, application: Entity) -> Optional[Entity]:
        """Live application by the same candidate for the same request. Caller holds the lock."""
        if application.status not in LIVE_APPLICATION_STATUSES:
            return None
        for existing in self._data[EntityType.APPLICATION].values():
            if (
                existing.hiring_request_id == application.hiring_request_id
                and existing.candidate_id == application.candidate_id
                and existing.status in LIVE_APPLICATION_STATUSES
            ):
                return existing
        return None

    def delete(self, entity_type: EntityType, entity_id: str) -> None:
        with self._lock:
            if self._data[entity_type].pop(entity_id, None) is None:
                raise NotFound(entity_type, entity_id)
        logger.debug("Deleted entity", extra={"entity_type": entity_type.value, "entity_id": entity_id})

    def conditional_update(
        self,
        entity_type: EntityType,
        entity_id: str,
        expected_status: Any,
        new_fields: Dict[str, Any],
    ) -> Entity:
        if "status" not in ENTITY_MODELS[entity_type].model_fields:
            raise PersistenceError(f"{entity_type.value} has no status to compare")

        forbidden = IMMUTABLE_FIELDS[entity_type] & set(new_fields)
        if forbidden:
            raise PersistenceError(
                f"Cannot change immutable fields on {entity_type.value}: {sorted(forbidden)}"
            )

        with self._lock:
            current = self._data[entity_type].get(entity_id)
            if current is None:
                raise NotFound(entity_type, entity_id)

            actual = _plain(getattr(current, "status", None))
            if actual != _plain(expected_status):
                raise Conflict(entity_type, entity_id, expected_status, actual)

            values = current.model_dump()
            if "updated_at" in values:
                values["updated_at"] = utcnow()
            values.update(new_fields)
            try:
                updated = type(current).model_validate(values)
            except ValidationError as e:
                raise PersistenceError(f"Invalid update for {entity_type.value} {entity_id}: {e}") from e

            self._data[entity_type][entity_id] = updated

        return updated

    def clear(self) -> None:
        """Remove everything (test helper)."""
        with self._lock:
            for table in self._data.values():
                table.clear()
