"""
SQLAlchemy Persistence Store.

PersistenceStore over a synchronous SQLAlchemy sessionmaker. Each call runs
in its own short transaction. conditional_update is one
``UPDATE ... WHERE id = :id AND status = :expected`` statement, so the
database decides which of two concurrent transitions wins. A partial unique
index does the same for two concurrent applications by one candidate.

Every SQLAlchemy failure is re-raised as PersistenceError with the original
exception chained.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from domain.aggregates import ENTITY_MODELS, IMMUTABLE_FIELDS, LIVE_APPLICATION_STATUSES, EntityType, utcnow
from domain.errors import Conflict, DuplicateApplication, NotFound, PersistenceError
from domain.repositories import Criteria, Entity, PersistenceStore

from .models import RECORD_MODELS

logger = logging.getLogger(__name__)


def _to_entity(entity_type: EntityType, record: Any) -> Entity:
    values = {column.name: getattr(record, column.name) for column in record.__table__.columns}
    return ENTITY_MODELS[entity_type].model_validate(values)


class SqlAlchemyStore(PersistenceStore):
    """Relational store (SQLite for development, PostgreSQL in production)."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, entity_type: EntityType, entity_id: str) -> Entity:
        record_model = RECORD_MODELS[entity_type]
        try:
            with self._session_factory() as session:
                record = session.get(record_model, entity_id)
                if record is None:
                    raise NotFound(entity_type, entity_id)
                return _to_entity(entity_type, record)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load {entity_type.value} {entity_id}: {e}") from e

    def find_where(self, entity_type: EntityType, criteria: Criteria) -> List[Entity]:
        record_model = RECORD_MODELS[entity_type]
        unknown = set(criteria) - set(record_model.__table__.columns.keys())
        if unknown:
            raise PersistenceError(f"Unknown {entity_type.value} fields in criteria: {sorted(unknown)}")

        stmt = select(record_model).filter_by(**dict(criteria))
        try:
            with self._session_factory() as session:
                records = session.execute(stmt).scalars().all()
                return [_to_entity(entity_type, record) for record in records]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to query {entity_type.value}: {e}") from e

    def create(self, entity_type: EntityType, fields: Dict[str, Any]) -> Entity:
        fields = dict(fields)
        fields.setdefault("id", uuid4().hex)
        try:
            entity = ENTITY_MODELS[entity_type].model_validate(fields)
        except ValidationError as e:
            raise PersistenceError(f"Invalid {entity_type.value} record: {e}") from e

        record = RECORD_MODELS[entity_type](**entity.model_dump())
        try:
            with self._session_factory() as session:
                with session.begin():
                    session.add(record)
        except IntegrityError as e:
            if entity_type == EntityType.APPLICATION:
                live = self._live_application(entity)
                if live is not None:
                    raise DuplicateApplication(
                        "Candidate already has an active application for this hiring request",
                        hiring_request_id=entity.hiring_request_id,
                        application_id=live.id,
                    ) from e
            raise PersistenceError(f"Failed to create {entity_type.value}: {e}") from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create {entity_type.value}: {e}") from e

        logger.debug("Created entity", extra={"entity_type": entity_type.value, "entity_id": entity.id})
        return entity

    def _live_application(self, application: Entity) -> Optional[Entity]:
        """Live application that blocked an insert, looked up after the constraint fired."""
        existing = self.find_where(
            EntityType.APPLICATION,
            {"hiring_request_id": application.hiring_request_id, "candidate_id": application.candidate_id},
        )
        return next((a for a in existing if a.status in LIVE_APPLICATION_STATUSES), None)

    def delete(self, entity_type: EntityType, entity_id: str) -> None:
        record_model = RECORD_MODELS[entity_type]
        try:
            with self._session_factory() as session:
                with session.begin():
                    record = session.get(record_model, entity_id)
                    if record is None:
                        raise NotFound(entity_type, entity_id)
                    session.delete(record)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete {entity_type.value} {entity_id}: {e}") from e

        logger.debug("Deleted entity", extra={"entity_type": entity_type.value, "entity_id": entity_id})

    def conditional_update(
        self,
        entity_type: EntityType,
        entity_id: str,
        expected_status: Any,
        new_fields: Dict[str, Any],
    ) -> Entity:
        record_model = RECORD_MODELS[entity_type]
        if "status" not in record_model.__table__.columns:
            raise PersistenceError(f"{entity_type.value} has no status to compare")

        forbidden = IMMUTABLE_FIELDS[entity_type] & set(new_fields)
        if forbidden:
            raise PersistenceError(
                f"Cannot change immutable fields on {entity_type.value}: {sorted(forbidden)}"
            )

        try:
            with self._session_factory() as session:
                with session.begin():
                    current = session.get(record_model, entity_id)
                    if current is None:
                        raise NotFound(entity_type, entity_id)

                    values = _to_entity(entity_type, current).model_dump()
                    values["updated_at"] = utcnow()
                    values.update(new_fields)
                    try:
                        updated = ENTITY_MODELS[entity_type].model_validate(values)
                    except ValidationError as e:
                        raise PersistenceError(f"Invalid update for {entity_type.value} {entity_id}: {e}") from e

                    changes = {key: getattr(updated, key) for key in set(new_fields) | {"updated_at"}}
                    stmt = (
                        update(record_model)
                        .where(record_model.id == entity_id)
                        .where(record_model.status == expected_status)
                        .values(**changes)
                        .execution_options(synchronize_session=False)
                    )
                    result = session.execute(stmt)

                    if result.rowcount == 0:
                        actual = session.get(record_model, entity_id, populate_existing=True)
                        raise Conflict(
                            entity_type,
                            entity_id,
                            expected_status,
                            actual.status if actual is not None else None,
                        )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update {entity_type.value} {entity_id}: {e}") from e

        return updated
