"""
Maven Staffing - Workflow

Status lifecycles for hiring requests and applications, the queries built
on them, and agency accounts.

Usage:
    from workflow import EntityRef, WorkflowEngine

    engine = WorkflowEngine(store)
    engine.request_transition(session, EntityRef.hiring_request(request_id), "in_progress")
"""

from .graph import (
    TransitionRule,
    TransitionGraph,
    HIRING_REQUEST_GRAPH,
    APPLICATION_GRAPH,
    STATUS_DISPLAY_NAMES,
    allowed_targets,
    check_transition,
    get_status_display_name,
)
from .base import TransitionEvent
from .hiring_requests import HiringRequestWorkflow
from .applications import ApplicationWorkflow
from .engine import EntityRef, WorkflowEngine
from .accounts import SAMPLE_IDENTITIES, seed_sample_identities, sign_up_agency

__all__ = [
    # Graphs
    "TransitionRule",
    "TransitionGraph",
    "HIRING_REQUEST_GRAPH",
    "APPLICATION_GRAPH",
    "STATUS_DISPLAY_NAMES",
    "allowed_targets",
    "check_transition",
    "get_status_display_name",
    # Engine
    "TransitionEvent",
    "HiringRequestWorkflow",
    "ApplicationWorkflow",
    "EntityRef",
    "WorkflowEngine",
    # Accounts
    "SAMPLE_IDENTITIES",
    "seed_sample_identities",
    "sign_up_agency",
]
