"""
Maven Staffing - Session Context

Session is the immutable value handed to every guard and workflow call.
SessionContext is the process-scoped holder that refreshes the current
identity from the identity provider and hands out Session snapshots.

Usage:
    context = SessionContext(provider)
    context.refresh()
    session = context.snapshot()
    decision = guard.guard(session, Requirement.of(roles=["agency"]))
"""

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from .roles import Role, parse_role

if TYPE_CHECKING:
    from domain.aggregates import Identity

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """External collaborator that knows who is signed in."""

    def current_identity(self) -> Optional["Identity"]:
        ...


class StaticIdentityProvider:
    """Provider returning a fixed identity. Used by scripts and tests."""

    def __init__(self, identity: Optional["Identity"] = None):
        self._identity = identity

    def current_identity(self) -> Optional["Identity"]:
        return self._identity


@dataclass(frozen=True)
class Session:
    """
    Who is making the current request.

    Owned by the caller for one evaluation; the core never keeps it.
    """

    identity: Optional["Identity"] = None

    @classmethod
    def anonymous(cls) -> "Session":
        return cls(identity=None)

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def identity_id(self) -> Optional[str]:
        return self.identity.id if self.identity is not None else None

    @property
    def role(self) -> Optional[Role]:
        if self.identity is None:
            return None
        return parse_role(self.identity.role)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        if self.identity is None:
            return {"is_authenticated": False}
        return {
            "is_authenticated": True,
            "identity_id": self.identity.id,
            "email": self.identity.email,
            "display_name": self.identity.display_name,
            "role": self.role.value if self.role else None,
        }


class SessionContext:
    """
    Process-scoped holder of the current identity.

    The held identity is replaced wholesale on refresh; callers only ever
    see immutable Session snapshots.
    """

    def __init__(self, provider: IdentityProvider):
        self._provider = provider
        self._lock = threading.Lock()
        self._session = Session.anonymous()

    def refresh(self) -> Session:
        """Re-read the identity from the provider."""
        identity = self._provider.current_identity()
        session = Session(identity=identity)
        with self._lock:
            self._session = session
        logger.debug(
            "Session refreshed",
            extra={"identity_id": session.identity_id, "authenticated": session.is_authenticated},
        )
        return session

    def snapshot(self) -> Session:
        """Current session value."""
        with self._lock:
            return self._session

    def clear(self) -> None:
        """Drop the current identity (sign-out)."""
        with self._lock:
            self._session = Session.anonymous()
