"""
Maven Staffing API Routes

Routes:
- GET  /api/health                                  : liveness
- POST /api/auth/signup                             : agency sign-up (returns a token)
- GET  /api/me                                      : current session and landing route
- GET  /api/menu                                    : sidebar entries for the session
- POST /api/guard                                   : may the session open this page?
- GET  /api/hiring-requests                         : agency's own requests (all for staff)
- POST /api/hiring-requests                         : post a hiring request
- GET  /api/hiring-requests/open                    : requests accepting applications
- GET  /api/hiring-requests/{id}                    : one request with allowed transitions
- POST /api/hiring-requests/{id}/transitions        : move a request
- GET  /api/hiring-requests/{id}/applications       : applicants (staff or owning agency)
- POST /api/hiring-requests/{id}/applications       : apply
- GET  /api/applications/mine                       : talent's own applications
- GET  /api/applications/{id}                       : one application with allowed transitions
- POST /api/applications/{id}/transitions           : move an application
- POST /api/applications/{id}/withdraw              : candidate withdraws
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from config.settings import Settings
from domain.aggregates import SubscriptionTier
from domain.repositories import PersistenceStore
from rbac.context import Session
from rbac.evaluator import Requirement
from rbac.guard import AccessGuard, Granted
from rbac.menu import list_menu_items, route_requirement
from rbac.permissions import Permission
from rbac.roles import Role, get_default_route
from rbac.jwt import create_access_token
from workflow.accounts import sign_up_agency
from workflow.engine import EntityRef, WorkflowEngine
from workflow.graph import get_status_display_name

from .dependencies import (
    get_engine,
    get_guard,
    get_session,
    get_settings_dep,
    get_store,
    require,
    require_auth,
)

router = APIRouter(prefix="/api", tags=["Maven"])

TALENT_AREA = Requirement(roles=frozenset({Role.TALENT}), permission=Permission.CAN_ACCESS_TALENT)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class AgencySignUpRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    display_name: str = Field(default="", max_length=255)
    name: str = Field(..., min_length=1, max_length=255, description="Agency name")
    phone: str = Field(default="", max_length=50)
    country: str = Field(default="", max_length=100)
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC


class GuardCheckRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Page path, e.g. /agency/dashboard")


class HiringRequestCreate(BaseModel):
    job_title: str = Field(..., max_length=255)
    quantity: int
    destination_country: str = Field(..., max_length=100)
    requirements: str = ""
    salary_range: str = Field(default="", max_length=100)
    deadline: datetime


class TransitionRequest(BaseModel):
    target_status: str = Field(..., description="Status to move to")


# =============================================================================
# SERIALIZATION
# =============================================================================

def _entity_payload(entity: Any, allowed: Optional[List[Any]] = None) -> Dict[str, Any]:
    payload = entity.model_dump(mode="json")
    payload["status_display"] = get_status_display_name(entity.status)
    if allowed is not None:
        payload["allowed_transitions"] = [s.value for s in allowed]
    return payload


# =============================================================================
# HEALTH & ACCOUNTS
# =============================================================================

@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.post("/auth/signup", status_code=status.HTTP_201_CREATED)
def signup(
    body: AgencySignUpRequest,
    store: PersistenceStore = Depends(get_store),
    settings: Settings = Depends(get_settings_dep),
) -> Dict[str, Any]:
    identity, agency = sign_up_agency(
        store,
        body.email,
        body.display_name or body.name,
        body.model_dump(include={"name", "phone", "country", "subscription_tier"}),
    )
    return {
        "identity": identity.model_dump(mode="json"),
        "agency": agency.model_dump(mode="json"),
        "access_token": create_access_token(identity, settings),
        "token_type": "bearer",
        "default_route": get_default_route(identity.role),
    }


# =============================================================================
# SESSION & NAVIGATION
# =============================================================================

@router.get("/me")
def me(
    session: Session = Depends(require_auth),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    payload = session.to_dict()
    payload["default_route"] = get_default_route(session.role)
    payload["permissions"] = sorted(p.value for p in engine.registry.permissions_for(session.role))
    return payload


@router.get("/menu")
def menu(
    session: Session = Depends(get_session),
    guard: AccessGuard = Depends(get_guard),
) -> Dict[str, Any]:
    items = list_menu_items(guard, session)
    return {"items": [item.to_dict() for item in items]}


@router.post("/guard")
def guard_check(
    body: GuardCheckRequest,
    session: Session = Depends(get_session),
    guard: AccessGuard = Depends(get_guard),
) -> Dict[str, Any]:
    requirement = route_requirement(body.path)
    if requirement is None:
        return {"path": body.path, "granted": True, "public": True}

    decision = guard.guard(session, requirement)
    if isinstance(decision, Granted):
        return {"path": body.path, "granted": True, "public": False}

    return {
        "path": body.path,
        "granted": False,
        "public": False,
        "kind": decision.kind.value,
        "unmet": decision.unmet.to_dict() if decision.unmet else None,
        "redirect": get_default_route(session.role),
    }


# =============================================================================
# HIRING REQUESTS
# =============================================================================

@router.get("/hiring-requests")
def list_hiring_requests(
    session: Session = Depends(require_auth),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    requests = engine.list_requests_for_agency(session)
    return {"items": [_entity_payload(r) for r in requests], "count": len(requests)}


@router.post("/hiring-requests", status_code=status.HTTP_201_CREATED)
def create_hiring_request(
    body: HiringRequestCreate,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    request = engine.create_hiring_request(session, body.model_dump())
    return _entity_payload(request)


@router.get("/hiring-requests/open")
def list_open_hiring_requests(
    session: Session = Depends(require_auth),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    requests = engine.list_open_requests(session)
    return {"items": [_entity_payload(r) for r in requests], "count": len(requests)}


@router.get("/hiring-requests/{request_id}")
def get_hiring_request(
    request_id: str,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    ref = EntityRef.hiring_request(request_id)
    request = engine.get(session, ref)
    return _entity_payload(request, engine.allowed_transitions(session, ref))


@router.post("/hiring-requests/{request_id}/transitions")
def transition_hiring_request(
    request_id: str,
    body: TransitionRequest,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    request = engine.request_transition(session, EntityRef.hiring_request(request_id), body.target_status)
    return _entity_payload(request)


@router.get("/hiring-requests/{request_id}/applications")
def list_hiring_request_applications(
    request_id: str,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    applications = engine.list_applications_for_request(session, request_id)
    return {"items": [_entity_payload(a) for a in applications], "count": len(applications)}


@router.post("/hiring-requests/{request_id}/applications", status_code=status.HTTP_201_CREATED)
def apply_to_hiring_request(
    request_id: str,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    application = engine.apply(session, request_id)
    return _entity_payload(application)


# =============================================================================
# APPLICATIONS
# =============================================================================

@router.get("/applications/mine")
def list_my_applications(
    session: Session = Depends(require(TALENT_AREA)),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    applications = engine.list_my_applications(session)
    return {"items": [_entity_payload(a) for a in applications], "count": len(applications)}


@router.get("/applications/{application_id}")
def get_application(
    application_id: str,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    ref = EntityRef.application(application_id)
    application = engine.get(session, ref)
    return _entity_payload(application, engine.allowed_transitions(session, ref))


@router.post("/applications/{application_id}/transitions")
def transition_application(
    application_id: str,
    body: TransitionRequest,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    application = engine.request_transition(session, EntityRef.application(application_id), body.target_status)
    return _entity_payload(application)


@router.post("/applications/{application_id}/withdraw")
def withdraw_application(
    application_id: str,
    session: Session = Depends(get_session),
    engine: WorkflowEngine = Depends(get_engine),
) -> Dict[str, Any]:
    application = engine.withdraw(session, application_id)
    return _entity_payload(application)
