"""
Application Workflow

Talent applying to open hiring requests, platform staff progressing or
rejecting applications, and candidates withdrawing their own.
"""

import logging
from typing import Any, List

from domain.aggregates import Application, EntityType, HiringRequest
from domain.errors import AuthorizationDenied, DuplicateApplication, InvalidTransition
from rbac.context import Session

from .base import LifecycleWorkflow, parse_status, require_identity
from .graph import allowed_targets

logger = logging.getLogger(__name__)


class ApplicationWorkflow(LifecycleWorkflow):
    """Create and move applications."""

    entity_type = EntityType.APPLICATION

    def is_owner(self, session: Session, application: Application) -> bool:
        return session.identity_id is not None and application.candidate_id == session.identity_id

    def live_applications(self, candidate_id: str, hiring_request_id: str) -> List[Application]:
        """Non-terminal applications by candidate for one hiring request."""
        existing = self.find(
            EntityType.APPLICATION,
            {"hiring_request_id": hiring_request_id, "candidate_id": candidate_id},
        )
        return [a for a in existing if not self.graph.is_terminal(a.status)]

    def ensure_open(self, request: HiringRequest) -> None:
        """
        Raises:
            InvalidTransition: request is not accepting applications
        """
        now = self.now()
        if not request.status.accepts_applications:
            raise InvalidTransition(
                f"Hiring request is {request.status.value} and not accepting applications",
                entity="application",
                hiring_request_id=request.id,
                hiring_request_status=request.status.value,
            )
        if request.is_expired(now):
            raise InvalidTransition(
                "Hiring request deadline has passed",
                entity="application",
                hiring_request_id=request.id,
                deadline=request.deadline.isoformat(),
            )

    def apply(self, session: Session, hiring_request_id: str) -> Application:
        """
        Apply the session's identity to a hiring request.

        Raises:
            AuthenticationRequired: no identity
            AuthorizationDenied: role may not apply
            NotFound: hiring request does not exist
            InvalidTransition: request closed, terminal or past deadline
            DuplicateApplication: a live application already exists (the store
                repeats this check atomically when inserting)
        """
        require_identity(session)

        if session.role not in self.graph.creator_roles:
            raise AuthorizationDenied(
                f"Role '{session.role.value if session.role else None}' may not apply to hiring requests",
                entity="application",
                creator_roles=sorted(r.value for r in self.graph.creator_roles),
            )

        request = self.fetch(EntityType.HIRING_REQUEST, hiring_request_id)
        self.ensure_open(request)

        live = self.live_applications(session.identity_id, request.id)
        if live:
            raise DuplicateApplication(
                "Candidate already has an active application for this hiring request",
                hiring_request_id=request.id,
                application_id=live[0].id,
            )

        now = self.now()
        application = self._create({
            "hiring_request_id": request.id,
            "candidate_id": session.identity_id,
            "status": self.graph.initial,
            "applied_at": now,
            "updated_at": now,
        })
        logger.info(
            "Application submitted",
            extra={"application_id": application.id, "hiring_request_id": request.id},
        )
        return application

    def transition(self, session: Session, application_id: str, target: Any) -> Application:
        """Move an application to target status."""
        require_identity(session)
        target_status = parse_status(self.graph, target)
        application = self.fetch(EntityType.APPLICATION, application_id)
        return self._apply_transition(session, application, target_status, self.is_owner(session, application))

    def withdraw(self, session: Session, application_id: str) -> Application:
        """Candidate withdraws their own application."""
        return self.transition(session, application_id, "withdrawn")

    def allowed_transitions(self, session: Session, application: Application) -> List[Any]:
        if not session.is_authenticated:
            return []
        return allowed_targets(self.graph, application.status, session.role, self.is_owner(session, application))
