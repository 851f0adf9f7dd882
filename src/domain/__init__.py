"""
Domain layer for the Maven staffing platform.

Contains the entity models, the error taxonomy and the persistence
interface the workflow core depends on.
"""

from .aggregates import (
    EntityType,
    Identity,
    Agency,
    SubscriptionTier,
    SubscriptionStatus,
    HiringRequest,
    HiringRequestStatus,
    Application,
    ApplicationStatus,
    utcnow,
)
from .errors import (
    ErrorKind,
    WorkflowError,
    AuthenticationRequired,
    AuthorizationDenied,
    InvalidTransition,
    DuplicateApplication,
    DuplicateAccount,
    NotFound,
    Conflict,
    PersistenceError,
)
from .repositories import PersistenceStore

__all__ = [
    # Entities
    "EntityType",
    "Identity",
    "Agency",
    "SubscriptionTier",
    "SubscriptionStatus",
    "HiringRequest",
    "HiringRequestStatus",
    "Application",
    "ApplicationStatus",
    "utcnow",
    # Errors
    "ErrorKind",
    "WorkflowError",
    "AuthenticationRequired",
    "AuthorizationDenied",
    "InvalidTransition",
    "DuplicateApplication",
    "DuplicateAccount",
    "NotFound",
    "Conflict",
    "PersistenceError",
    # Repositories
    "PersistenceStore",
]
