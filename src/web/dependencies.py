"""
Maven Staffing - FastAPI Dependencies

Dependency injection helpers for route protection.

Usage:
    # Resolve the caller (may be anonymous)
    @router.get("/me")
    def me(session: Session = Depends(get_session)):
        ...

    # Enforce a requirement through the access guard
    @router.get("/applications/mine")
    def mine(session: Session = Depends(require(TALENT_AREA))):
        ...
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.logging_setup import identity_id_var
from config.settings import Settings
from domain.repositories import PersistenceStore
from rbac.context import Session, SessionContext
from rbac.evaluator import Requirement
from rbac.guard import AccessGuard
from rbac.jwt import TokenIdentityProvider
from workflow.engine import WorkflowEngine

logger = logging.getLogger(__name__)


# =============================================================================
# HTTP BEARER SECURITY
# =============================================================================

security = HTTPBearer(auto_error=False)


# =============================================================================
# APPLICATION STATE
# =============================================================================

def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> PersistenceStore:
    return request.app.state.store


def get_engine(request: Request) -> WorkflowEngine:
    return request.app.state.engine


def get_guard(request: Request) -> AccessGuard:
    return request.app.state.guard


# =============================================================================
# SESSION
# =============================================================================

def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Session:
    """
    Session for the current request.

    Does NOT enforce authentication; a missing or invalid token yields an
    anonymous session. Use require() to enforce.
    """
    token = credentials.credentials if credentials is not None else None
    provider = TokenIdentityProvider(
        token,
        store=request.app.state.store,
        settings=request.app.state.settings,
    )
    session = SessionContext(provider).refresh()
    identity_id_var.set(session.identity_id)
    return session


def require(requirement: Requirement) -> Callable[..., Session]:
    """
    Dependency factory enforcing requirement through the access guard.

    Raises AuthenticationRequired (401) or AuthorizationDenied (403).
    """

    def dependency(
        session: Session = Depends(get_session),
        guard: AccessGuard = Depends(get_guard),
    ) -> Session:
        guard.require(session, requirement)
        return session

    return dependency


require_auth = require(Requirement())
