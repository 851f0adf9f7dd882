"""
Permission Evaluator

Decides whether an identity satisfies a Requirement. A requirement names a
set of acceptable roles, a permission, or both; every supplied constraint
must hold.

Pure and deterministic for a given RoleRegistry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, Optional, Union

from .roles import Role, parse_role
from .permissions import DEFAULT_REGISTRY, Permission, RoleRegistry

if TYPE_CHECKING:
    from domain.aggregates import Identity


@dataclass(frozen=True)
class Requirement:
    """What a protected page or action needs."""

    roles: Optional[FrozenSet[Role]] = None
    permission: Optional[Permission] = None

    @classmethod
    def of(
        cls,
        roles: Optional[Iterable[Union[Role, str]]] = None,
        permission: Optional[Union[Permission, str]] = None,
    ) -> "Requirement":
        """Build a requirement from loose values."""
        return cls(
            roles=frozenset(Role(r) for r in roles) if roles is not None else None,
            permission=Permission(permission) if permission is not None else None,
        )

    @property
    def is_open(self) -> bool:
        """No constraints at all: any authenticated identity passes."""
        return self.roles is None and self.permission is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roles": sorted(r.value for r in self.roles) if self.roles is not None else None,
            "permission": self.permission.value if self.permission else None,
        }


class DenyReason(str, Enum):
    ROLE_NOT_ALLOWED = "role_not_allowed"
    PERMISSION_MISSING = "permission_missing"


@dataclass(frozen=True)
class Allow:
    allowed: bool = True


@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    unmet: Requirement
    allowed: bool = False


Decision = Union[Allow, Deny]


class PermissionEvaluator:
    """Evaluates requirements against a RoleRegistry."""

    def __init__(self, registry: Optional[RoleRegistry] = None):
        self.registry = registry or DEFAULT_REGISTRY

    def evaluate(self, identity: "Identity", requirement: Requirement) -> Decision:
        role = parse_role(getattr(identity, "role", None))

        if requirement.roles is not None and role not in requirement.roles:
            return Deny(
                reason=DenyReason.ROLE_NOT_ALLOWED,
                unmet=Requirement(roles=requirement.roles),
            )

        if requirement.permission is not None:
            if requirement.permission not in self.registry.permissions_for(role):
                return Deny(
                    reason=DenyReason.PERMISSION_MISSING,
                    unmet=Requirement(permission=requirement.permission),
                )

        return Allow()
