"""
Access Guard

Single entry point for "may this session reach this page/action?".
Menu filtering, route protection and the HTTP dependencies all go through
AccessGuard.guard, so a check is never duplicated between a side-effect
path and a render path.

Decisions are values (Granted / Denied). Use AccessGuard.require when the
caller wants a typed exception instead.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from domain.errors import AuthenticationRequired, AuthorizationDenied, ErrorKind

from .context import Session
from .evaluator import Deny, DenyReason, PermissionEvaluator, Requirement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Granted:
    granted: bool = True


@dataclass(frozen=True)
class Denied:
    """
    Failed guard evaluation.

    kind is AuthenticationRequired or AuthorizationDenied; unmet is the part
    of the requirement the identity did not satisfy (None when nobody is
    signed in).
    """

    kind: ErrorKind
    unmet: Optional[Requirement] = None
    reason: Optional[DenyReason] = None
    granted: bool = False


GuardDecision = Union[Granted, Denied]

UnauthorizedHook = Callable[[Session, Denied], None]


class AccessGuard:
    """
    Wraps protected resources.

    on_unauthorized is called exactly once per failed evaluation. It is a
    notification only; its failures are logged and never change the decision.
    """

    def __init__(
        self,
        evaluator: Optional[PermissionEvaluator] = None,
        on_unauthorized: Optional[UnauthorizedHook] = None,
    ):
        self.evaluator = evaluator or PermissionEvaluator()
        self.on_unauthorized = on_unauthorized

    def guard(self, session: Session, requirement: Requirement) -> GuardDecision:
        """Evaluate requirement for the session."""
        decision = self._decide(session, requirement)
        if isinstance(decision, Denied):
            logger.info(
                "Access denied",
                extra={
                    "identity_id": session.identity_id,
                    "kind": decision.kind.value,
                    "requirement": requirement.to_dict(),
                },
            )
            self._notify(session, decision)
        return decision

    def require(self, session: Session, requirement: Requirement) -> None:
        """Evaluate requirement and raise the matching error on denial."""
        decision = self.guard(session, requirement)
        if isinstance(decision, Granted):
            return
        if decision.kind == ErrorKind.AUTHENTICATION_REQUIRED:
            raise AuthenticationRequired()
        raise AuthorizationDenied(
            "Insufficient role or permission",
            unmet=decision.unmet,
            reason=decision.reason.value if decision.reason else None,
        )

    def is_granted(self, session: Session, requirement: Requirement) -> bool:
        """Silent check: no hook, no logging. Used for filtering lists."""
        return isinstance(self._decide(session, requirement), Granted)

    def _decide(self, session: Session, requirement: Requirement) -> GuardDecision:
        if not session.is_authenticated:
            return Denied(kind=ErrorKind.AUTHENTICATION_REQUIRED)

        result = self.evaluator.evaluate(session.identity, requirement)
        if isinstance(result, Deny):
            return Denied(
                kind=ErrorKind.AUTHORIZATION_DENIED,
                unmet=result.unmet,
                reason=result.reason,
            )
        return Granted()

    def _notify(self, session: Session, decision: Denied) -> None:
        if self.on_unauthorized is None:
            return
        try:
            self.on_unauthorized(session, decision)
        except Exception:
            logger.exception("on_unauthorized hook failed")
