"""
Workflow Engine

Facade over the hiring request and application workflows. This is the
surface UI callers and the HTTP layer use:

    engine = WorkflowEngine(store)
    request = engine.create_hiring_request(agency_session, {...})
    engine.request_transition(admin_session, EntityRef.hiring_request(request.id), "in_progress")

Every call takes an immutable Session. The engine keeps no per-caller state.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional

from domain.aggregates import Application, EntityType, HiringRequest, as_utc
from domain.errors import AuthorizationDenied, InvalidTransition
from domain.repositories import PersistenceStore
from rbac.context import Session
from rbac.permissions import DEFAULT_REGISTRY, Permission, RoleRegistry
from rbac.roles import Role

from .applications import ApplicationWorkflow
from .base import Clock, TransitionHook, require_identity
from .graph import APPLICATION_GRAPH, HIRING_REQUEST_GRAPH, TransitionGraph
from .hiring_requests import HiringRequestWorkflow


@dataclass(frozen=True)
class EntityRef:
    """Points at one workflow entity."""
    entity_type: EntityType
    entity_id: str

    @classmethod
    def hiring_request(cls, entity_id: str) -> "EntityRef":
        return cls(EntityType.HIRING_REQUEST, entity_id)

    @classmethod
    def application(cls, entity_id: str) -> "EntityRef":
        return cls(EntityType.APPLICATION, entity_id)


class WorkflowEngine:
    """
    Status transitions and workflow queries for hiring requests and
    applications.

    Never mutates an entity when it raises. Every committed transition is a
    single conditional update against the status that was read, so a
    concurrent change surfaces as Conflict.
    """

    def __init__(
        self,
        store: PersistenceStore,
        registry: RoleRegistry = DEFAULT_REGISTRY,
        hiring_request_graph: TransitionGraph = HIRING_REQUEST_GRAPH,
        application_graph: TransitionGraph = APPLICATION_GRAPH,
        clock: Optional[Clock] = None,
        on_transition: Optional[TransitionHook] = None,
    ):
        self.store = store
        self.registry = registry
        self.hiring_requests = HiringRequestWorkflow(store, hiring_request_graph, clock, on_transition)
        self.applications = ApplicationWorkflow(store, application_graph, clock, on_transition)

    @classmethod
    def from_policy(cls, store: PersistenceStore, policy: Any, **kwargs: Any) -> "WorkflowEngine":
        """Build an engine from a loaded access policy."""
        return cls(
            store,
            registry=policy.registry,
            hiring_request_graph=policy.hiring_request_graph,
            application_graph=policy.application_graph,
            **kwargs,
        )

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def create_hiring_request(self, session: Session, fields: Mapping[str, Any]) -> HiringRequest:
        return self.hiring_requests.create(session, fields)

    def apply(self, session: Session, hiring_request_id: str) -> Application:
        return self.applications.apply(session, hiring_request_id)

    def withdraw(self, session: Session, application_id: str) -> Application:
        return self.applications.withdraw(session, application_id)

    def request_transition(self, session: Session, entity_ref: EntityRef, target_status: Any) -> Any:
        """
        Move the referenced entity to target_status.

        Returns:
            The new entity value

        Raises:
            AuthenticationRequired, AuthorizationDenied, InvalidTransition,
            NotFound, Conflict, PersistenceError
        """
        if entity_ref.entity_type == EntityType.HIRING_REQUEST:
            return self.hiring_requests.transition(session, entity_ref.entity_id, target_status)
        if entity_ref.entity_type == EntityType.APPLICATION:
            return self.applications.transition(session, entity_ref.entity_id, target_status)
        raise InvalidTransition(
            f"{entity_ref.entity_type.value} has no status lifecycle",
            entity=entity_ref.entity_type.value,
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get(self, session: Session, entity_ref: EntityRef) -> Any:
        """Fetch an entity the session may see."""
        require_identity(session)
        if entity_ref.entity_type == EntityType.HIRING_REQUEST:
            return self.hiring_requests.fetch(EntityType.HIRING_REQUEST, entity_ref.entity_id)
        if entity_ref.entity_type == EntityType.APPLICATION:
            application = self.applications.fetch(EntityType.APPLICATION, entity_ref.entity_id)
            if not (self._sees_everything(session) or self.applications.is_owner(session, application)):
                raise AuthorizationDenied(
                    "Only the candidate or platform staff may view this application",
                    application_id=application.id,
                )
            return application
        raise InvalidTransition(
            f"{entity_ref.entity_type.value} is not a workflow entity",
            entity=entity_ref.entity_type.value,
        )

    def allowed_transitions(self, session: Session, entity_ref: EntityRef) -> List[Enum]:
        """Statuses the session may request for the entity right now."""
        entity = self.get(session, entity_ref)
        if entity_ref.entity_type == EntityType.HIRING_REQUEST:
            return self.hiring_requests.allowed_transitions(session, entity)
        return self.applications.allowed_transitions(session, entity)

    def list_open_requests(self, session: Session, now: Optional[datetime] = None) -> List[HiringRequest]:
        """
        Hiring requests accepting applications: pending or in progress, with
        a deadline strictly in the future.

        For talent, requests they already hold a live application for are
        left out. Newest first.
        """
        require_identity(session)
        at = as_utc(now) if now is not None else self.hiring_requests.now()

        requests = [
            r for r in self.hiring_requests.find(EntityType.HIRING_REQUEST, {})
            if r.is_open(at)
        ]

        if session.role == Role.TALENT:
            mine = self.applications.find(EntityType.APPLICATION, {"candidate_id": session.identity_id})
            applied = {
                a.hiring_request_id for a in mine
                if not self.applications.graph.is_terminal(a.status)
            }
            requests = [r for r in requests if r.id not in applied]

        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    def list_my_applications(self, session: Session) -> List[Application]:
        """The session identity's own applications, newest first."""
        require_identity(session)
        mine = self.applications.find(EntityType.APPLICATION, {"candidate_id": session.identity_id})
        return sorted(mine, key=lambda a: a.applied_at, reverse=True)

    def list_requests_for_agency(self, session: Session) -> List[HiringRequest]:
        """
        An agency's own hiring requests. Identities with canViewAllRequests
        see every request.
        """
        require_identity(session)
        if self._sees_everything(session):
            requests = self.hiring_requests.find(EntityType.HIRING_REQUEST, {})
        else:
            agency = self.hiring_requests.agency_for(session)
            if agency is None:
                raise AuthorizationDenied(
                    "Identity does not own an agency",
                    identity_id=session.identity_id,
                )
            requests = self.hiring_requests.find(EntityType.HIRING_REQUEST, {"agency_id": agency.id})
        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    def list_applications_for_request(self, session: Session, hiring_request_id: str) -> List[Application]:
        """Applicants for one hiring request; platform staff or the owning agency."""
        require_identity(session)
        request = self.hiring_requests.fetch(EntityType.HIRING_REQUEST, hiring_request_id)
        if not (self._sees_everything(session) or self.hiring_requests.is_owner(session, request)):
            raise AuthorizationDenied(
                "Only the owning agency or platform staff may list applicants",
                hiring_request_id=hiring_request_id,
            )
        applications = self.applications.find(EntityType.APPLICATION, {"hiring_request_id": request.id})
        return sorted(applications, key=lambda a: a.applied_at)

    def _sees_everything(self, session: Session) -> bool:
        return self.registry.has_permission(session.role, Permission.CAN_VIEW_ALL_REQUESTS)
