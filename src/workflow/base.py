"""
Shared plumbing for the lifecycle workflows.

Every status change goes through LifecycleWorkflow._apply_transition:
validate against the graph, then one conditional_update with the status
that was read. Store failures that are not already workflow errors are
wrapped in PersistenceError with the original exception chained.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from domain.aggregates import EntityType, as_utc, utcnow
from domain.errors import AuthenticationRequired, Conflict, InvalidTransition, PersistenceError, WorkflowError
from domain.repositories import PersistenceStore
from rbac.context import Session

from .graph import TransitionGraph, check_transition

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class TransitionEvent:
    """Record of a committed status change, handed to on_transition hooks."""
    entity_type: EntityType
    entity_id: str
    from_status: Enum
    to_status: Enum
    actor_id: Optional[str]
    at: datetime

    def to_dict(self) -> dict:
        return {
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "actor_id": self.actor_id,
            "at": self.at.isoformat(),
        }


TransitionHook = Callable[[TransitionEvent], None]


def require_identity(session: Session) -> None:
    if not session.is_authenticated:
        raise AuthenticationRequired()


def parse_status(graph: TransitionGraph, value: Any) -> Enum:
    """Coerce a raw status into the graph's enum, InvalidTransition if unknown."""
    try:
        return graph.status_type(value)
    except ValueError:
        raise InvalidTransition(
            f"Unknown {graph.name} status '{value}'",
            entity=graph.name,
            target_status=str(value),
        ) from None


class LifecycleWorkflow:
    """Base for the hiring request and application workflows."""

    entity_type: EntityType

    def __init__(
        self,
        store: PersistenceStore,
        graph: TransitionGraph,
        clock: Optional[Clock] = None,
        on_transition: Optional[TransitionHook] = None,
    ):
        self.store = store
        self.graph = graph
        self.clock = clock or utcnow
        self.on_transition = on_transition

    def now(self) -> datetime:
        return as_utc(self.clock())

    def _store_call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(*args)
        except WorkflowError:
            raise
        except Exception as e:
            logger.error(
                "Persistence store failure",
                extra={"operation": operation, "entity_type": self.entity_type.value},
            )
            raise PersistenceError(f"{operation} failed: {e}") from e

    def fetch(self, entity_type: EntityType, entity_id: str) -> Any:
        return self._store_call("get", self.store.get, entity_type, entity_id)

    def find(self, entity_type: EntityType, criteria: dict) -> list:
        return self._store_call("find_where", self.store.find_where, entity_type, criteria)

    def _create(self, fields: dict) -> Any:
        return self._store_call("create", self.store.create, self.entity_type, fields)

    def _apply_transition(self, session: Session, entity: Any, target: Enum, is_owner: bool) -> Any:
        """
        Validate and commit one status change.

        Raises InvalidTransition or AuthorizationDenied before touching the
        store, and Conflict when another caller moved the entity first.
        """
        current = entity.status
        check_transition(self.graph, current, target, session.role, is_owner)
        now = self.now()

        try:
            updated = self._store_call(
                "conditional_update",
                self.store.conditional_update,
                self.entity_type,
                entity.id,
                current,
                {"status": target, "updated_at": now},
            )
        except Conflict as e:
            logger.warning("Transition lost a concurrent update", extra=e.details)
            raise

        event = TransitionEvent(
            entity_type=self.entity_type,
            entity_id=entity.id,
            from_status=current,
            to_status=target,
            actor_id=session.identity_id,
            at=now,
        )
        logger.info("Status transition", extra=event.to_dict())
        self._notify(event)
        return updated

    def _notify(self, event: TransitionEvent) -> None:
        if self.on_transition is None:
            return
        try:
            self.on_transition(event)
        except Exception:
            logger.exception("on_transition hook failed")
