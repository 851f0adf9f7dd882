"""
Hiring Request Workflow

Creation by agencies and the pending -> in_progress -> fulfilled / cancelled
lifecycle. A request is always bound to the agency owned by the acting
identity; an agency id supplied by the caller is never used.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from domain.aggregates import Agency, EntityType, HiringRequest, as_utc
from domain.errors import AuthorizationDenied, InvalidTransition
from rbac.context import Session

from .base import LifecycleWorkflow, parse_status, require_identity
from .graph import allowed_targets

logger = logging.getLogger(__name__)

# Fields an agency may set when posting a request
EDITABLE_FIELDS = (
    "job_title",
    "quantity",
    "destination_country",
    "requirements",
    "salary_range",
    "deadline",
)


def _blocked(message: str, **details: Any) -> InvalidTransition:
    return InvalidTransition(f"Hiring request creation blocked: {message}", entity="hiring_request", **details)


class HiringRequestWorkflow(LifecycleWorkflow):
    """Create and move hiring requests."""

    entity_type = EntityType.HIRING_REQUEST

    def agency_for(self, session: Session) -> Optional[Agency]:
        """The agency owned by the session's identity, if any."""
        if not session.is_authenticated:
            return None
        agencies = self.find(EntityType.AGENCY, {"owner_identity_id": session.identity_id})
        return agencies[0] if agencies else None

    def is_owner(self, session: Session, request: HiringRequest) -> bool:
        agency = self.agency_for(session)
        return agency is not None and agency.id == request.agency_id

    def validate_fields(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Check caller-supplied fields and return only the editable ones.

        Raises:
            InvalidTransition: missing title, quantity below 1, missing
                destination, or a deadline that is not in the future
        """
        values = {key: fields[key] for key in EDITABLE_FIELDS if key in fields}

        job_title = str(values.get("job_title") or "").strip()
        if not job_title:
            raise _blocked("job_title is required", field="job_title")
        values["job_title"] = job_title

        quantity = values.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise _blocked("quantity must be a whole number", field="quantity")
        if quantity < 1:
            raise _blocked("quantity must be at least 1", field="quantity", quantity=quantity)

        destination = str(values.get("destination_country") or "").strip()
        if not destination:
            raise _blocked("destination_country is required", field="destination_country")
        values["destination_country"] = destination

        deadline = values.get("deadline")
        if not isinstance(deadline, datetime):
            raise _blocked("deadline must be a datetime", field="deadline")
        deadline = as_utc(deadline)
        if deadline <= self.now():
            raise _blocked("deadline must be in the future", field="deadline", deadline=deadline.isoformat())
        values["deadline"] = deadline

        return values

    def create(self, session: Session, fields: Mapping[str, Any]) -> HiringRequest:
        """
        Post a new hiring request in the initial status.

        Raises:
            AuthenticationRequired: no identity
            AuthorizationDenied: role may not create, or identity owns no agency
            InvalidTransition: field validation failed
        """
        require_identity(session)

        if session.role not in self.graph.creator_roles:
            raise AuthorizationDenied(
                f"Role '{session.role.value if session.role else None}' may not create hiring requests",
                entity="hiring_request",
                creator_roles=sorted(r.value for r in self.graph.creator_roles),
            )

        agency = self.agency_for(session)
        if agency is None:
            raise AuthorizationDenied(
                "Identity does not own an agency",
                entity="hiring_request",
                identity_id=session.identity_id,
            )

        if "agency_id" in fields and fields["agency_id"] != agency.id:
            logger.warning(
                "Ignoring caller-supplied agency_id",
                extra={"identity_id": session.identity_id, "agency_id": agency.id},
            )

        values = self.validate_fields(fields)
        now = self.now()
        values.update(
            agency_id=agency.id,
            status=self.graph.initial,
            created_at=now,
            updated_at=now,
        )

        request = self._create(values)
        logger.info(
            "Hiring request created",
            extra={"hiring_request_id": request.id, "agency_id": agency.id, "quantity": request.quantity},
        )
        return request

    def transition(self, session: Session, request_id: str, target: Any) -> HiringRequest:
        """Move a hiring request to target status."""
        require_identity(session)
        target_status = parse_status(self.graph, target)
        request = self.fetch(EntityType.HIRING_REQUEST, request_id)
        return self._apply_transition(session, request, target_status, self.is_owner(session, request))

    def allowed_transitions(self, session: Session, request: HiringRequest) -> List[Any]:
        if not session.is_authenticated:
            return []
        return allowed_targets(self.graph, request.status, session.role, self.is_owner(session, request))
