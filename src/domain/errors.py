"""
Workflow error taxonomy.

Every failure the core reports is one of these. Each carries a stable
``kind`` code that callers map to their own display text; the core never
supplies user-facing wording beyond a diagnostic message.

None of these are retried by the core. Re-reading after a Conflict is a
caller decision.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Stable error codes exposed to callers."""
    AUTHENTICATION_REQUIRED = "AuthenticationRequired"
    AUTHORIZATION_DENIED = "AuthorizationDenied"
    INVALID_TRANSITION = "InvalidTransition"
    DUPLICATE_APPLICATION = "DuplicateApplication"
    DUPLICATE_ACCOUNT = "DuplicateAccount"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    PERSISTENCE_ERROR = "PersistenceError"


class WorkflowError(Exception):
    """Base class for all core errors."""

    kind: ErrorKind = ErrorKind.PERSISTENCE_ERROR

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class AuthenticationRequired(WorkflowError):
    """No identity in the session."""
    kind = ErrorKind.AUTHENTICATION_REQUIRED

    def __init__(self, message: str = "Authentication required", **details: Any):
        super().__init__(message, **details)


class AuthorizationDenied(WorkflowError):
    """Identity present but lacks the role, permission or ownership needed."""
    kind = ErrorKind.AUTHORIZATION_DENIED

    def __init__(self, message: str, unmet: Optional[Any] = None, **details: Any):
        super().__init__(message, **details)
        self.unmet = unmet
        if unmet is not None and hasattr(unmet, "to_dict"):
            self.details.setdefault("unmet", unmet.to_dict())


class InvalidTransition(WorkflowError):
    """Target status unreachable from the current status, or creation blocked."""
    kind = ErrorKind.INVALID_TRANSITION


class DuplicateApplication(WorkflowError):
    """Candidate already has a live application for this hiring request."""
    kind = ErrorKind.DUPLICATE_APPLICATION


class DuplicateAccount(WorkflowError):
    """An account with this email already exists."""
    kind = ErrorKind.DUPLICATE_ACCOUNT


class NotFound(WorkflowError):
    """Entity id not resolved by the store."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity_type: Any, entity_id: str):
        name = getattr(entity_type, "value", entity_type)
        super().__init__(
            f"{name} {entity_id} not found",
            entity_type=name,
            entity_id=entity_id,
        )


class Conflict(WorkflowError):
    """A concurrent update changed the status first."""
    kind = ErrorKind.CONFLICT

    def __init__(self, entity_type: Any, entity_id: str, expected_status: Any, actual_status: Any = None):
        name = getattr(entity_type, "value", entity_type)
        expected = getattr(expected_status, "value", expected_status)
        actual = getattr(actual_status, "value", actual_status)
        super().__init__(
            f"{name} {entity_id} is no longer '{expected}'",
            entity_type=name,
            entity_id=entity_id,
            expected_status=expected,
            actual_status=actual,
        )


class PersistenceError(WorkflowError):
    """Store failure. The original exception is chained as __cause__."""
    kind = ErrorKind.PERSISTENCE_ERROR
