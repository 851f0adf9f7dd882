"""
FastAPI application for the Maven staffing core.

Usage:
    uvicorn --factory web.app:build_app   # with src/ on PYTHONPATH

    # Tests build their own app around an in-memory store:
    app = create_app(store=InMemoryStore(), settings=Settings(), policy=AccessPolicy())
"""

import logging
from typing import Optional

from fastapi import FastAPI

from config.logging_setup import configure_logging
from config.policy import AccessPolicy, get_access_policy
from config.settings import Settings, get_settings
from domain.repositories import PersistenceStore
from rbac.context import Session
from rbac.evaluator import PermissionEvaluator
from rbac.guard import AccessGuard, Denied, UnauthorizedHook
from workflow.base import TransitionHook
from workflow.engine import WorkflowEngine

from .errors import register_exception_handlers
from .middleware import RequestIDMiddleware, setup_cors
from .routes import router

logger = logging.getLogger(__name__)


def _log_unauthorized(session: Session, decision: Denied) -> None:
    logger.warning(
        "Unauthorized page or action",
        extra={
            "identity_id": session.identity_id,
            "kind": decision.kind.value,
            "unmet": decision.unmet.to_dict() if decision.unmet else None,
        },
    )


def create_app(
    store: Optional[PersistenceStore] = None,
    settings: Optional[Settings] = None,
    policy: Optional[AccessPolicy] = None,
    on_unauthorized: Optional[UnauthorizedHook] = _log_unauthorized,
    on_transition: Optional[TransitionHook] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Persistence store; defaults to the SQL store from settings
        settings: Application settings; defaults to get_settings()
        policy: Access policy; defaults to the policy file from settings
        on_unauthorized: Guard hook called once per denied evaluation
        on_transition: Workflow hook called after each committed transition
    """
    settings = settings or get_settings()
    policy = policy or get_access_policy()

    if store is None:
        from database.connection import get_sql_store
        store = get_sql_store(settings)

    app = FastAPI(
        title=settings.name,
        debug=settings.debug,
        docs_url=None if settings.is_production else "/docs",
    )

    app.state.settings = settings
    app.state.policy = policy
    app.state.store = store
    app.state.guard = AccessGuard(PermissionEvaluator(policy.registry), on_unauthorized=on_unauthorized)
    app.state.engine = WorkflowEngine.from_policy(store, policy, on_transition=on_transition)

    register_exception_handlers(app)
    app.add_middleware(RequestIDMiddleware)
    setup_cors(app, settings.cors_origins)
    app.include_router(router)

    logger.info(
        "Application created",
        extra={"environment": settings.environment, "policy_source": policy.source},
    )
    return app


def build_app() -> FastAPI:
    """Application from environment settings, with logging configured."""
    settings = get_settings()
    configure_logging(settings)
    return create_app(settings=settings)

