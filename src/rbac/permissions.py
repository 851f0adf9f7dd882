"""
Maven Staffing - Permission Definitions

Permissions are named capabilities, independent of the role hierarchy.
Roles map to a fixed permission set through the RoleRegistry.

The default table below can be overridden per deployment through the
access policy file (see config.policy) without touching code.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Union

from .roles import Role, parse_role


class Permission(str, Enum):
    """
    All permissions in the system.

    Values are the capability names used by the web client
    (e.g. canAccessAgency).
    """

    CAN_ACCESS_ADMIN = "canAccessAdmin"
    CAN_ACCESS_AGENCY = "canAccessAgency"
    CAN_ACCESS_TALENT = "canAccessTalent"
    CAN_MANAGE_USERS = "canManageUsers"
    CAN_VIEW_ALL_REQUESTS = "canViewAllRequests"
    CAN_MANAGE_SYSTEM = "canManageSystem"


@dataclass(frozen=True)
class PermissionInfo:
    """Complete information about a permission."""
    permission: Permission
    name: str
    description: str


PERMISSIONS: dict[Permission, PermissionInfo] = {
    Permission.CAN_ACCESS_ADMIN: PermissionInfo(
        Permission.CAN_ACCESS_ADMIN,
        "Access Admin",
        "Open the platform administration screens",
    ),
    Permission.CAN_ACCESS_AGENCY: PermissionInfo(
        Permission.CAN_ACCESS_AGENCY,
        "Access Agency",
        "Open the agency dashboard and request screens",
    ),
    Permission.CAN_ACCESS_TALENT: PermissionInfo(
        Permission.CAN_ACCESS_TALENT,
        "Access Talent",
        "Open the talent dashboard and applications",
    ),
    Permission.CAN_MANAGE_USERS: PermissionInfo(
        Permission.CAN_MANAGE_USERS,
        "Manage Users",
        "Create and edit platform accounts",
    ),
    Permission.CAN_VIEW_ALL_REQUESTS: PermissionInfo(
        Permission.CAN_VIEW_ALL_REQUESTS,
        "View All Requests",
        "See hiring requests from every agency",
    ),
    Permission.CAN_MANAGE_SYSTEM: PermissionInfo(
        Permission.CAN_MANAGE_SYSTEM,
        "Manage System",
        "Change platform-wide settings",
    ),
}


def get_permission_info(permission: Permission) -> PermissionInfo:
    """Get information about a permission."""
    return PERMISSIONS[permission]


def parse_permission(value: Union[Permission, str, None]) -> Optional[Permission]:
    """Coerce a raw value to a Permission, or None if it is not known."""
    if isinstance(value, Permission):
        return value
    try:
        return Permission(value)
    except ValueError:
        return None


# =============================================================================
# ROLE -> PERMISSION MAPPING
# =============================================================================

DEFAULT_ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    # ADMIN: Everything
    Role.ADMIN: frozenset(Permission),

    # TEAM: Admin screens and all requests, no account or system management
    Role.TEAM: frozenset({
        Permission.CAN_ACCESS_ADMIN,
        Permission.CAN_VIEW_ALL_REQUESTS,
    }),

    # AGENCY: Own dashboard only
    Role.AGENCY: frozenset({
        Permission.CAN_ACCESS_AGENCY,
    }),

    # TALENT: Own dashboard only
    Role.TALENT: frozenset({
        Permission.CAN_ACCESS_TALENT,
    }),
}


class RoleRegistry:
    """
    Immutable role -> permission table.

    Lookups fail closed: an unknown role has no permissions.
    """

    def __init__(self, table: Optional[Mapping[Role, Iterable[Permission]]] = None):
        source = DEFAULT_ROLE_PERMISSIONS if table is None else table
        self._table: Dict[Role, FrozenSet[Permission]] = {
            role: frozenset(perms) for role, perms in source.items()
        }

    def permissions_for(self, role: Union[Role, str, None]) -> FrozenSet[Permission]:
        """Get all permissions for a role (empty set for unknown roles)."""
        parsed = parse_role(role)
        if parsed is None:
            return frozenset()
        return self._table.get(parsed, frozenset())

    def has_permission(self, role: Union[Role, str, None], permission: Permission) -> bool:
        """Check if a role has a specific permission."""
        return permission in self.permissions_for(role)

    def roles(self) -> FrozenSet[Role]:
        return frozenset(self._table)

    def with_overrides(self, overrides: Mapping[Role, Iterable[Permission]]) -> "RoleRegistry":
        """Return a new registry where the given roles use the given permission sets."""
        merged: Dict[Role, Iterable[Permission]] = dict(self._table)
        merged.update(overrides)
        return RoleRegistry(merged)

    def as_dict(self) -> Dict[str, list]:
        """Serializable view of the table, for diagnostics endpoints."""
        return {
            role.value: sorted(perm.value for perm in perms)
            for role, perms in self._table.items()
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RoleRegistry):
            return NotImplemented
        return self._table == other._table

    def __hash__(self) -> int:
        return hash(frozenset(self._table.items()))

    def __repr__(self) -> str:
        return f"RoleRegistry({self.as_dict()!r})"


DEFAULT_REGISTRY = RoleRegistry()


def get_role_permissions(role: Role) -> FrozenSet[Permission]:
    """Get all permissions for a role from the default table."""
    return DEFAULT_REGISTRY.permissions_for(role)


def has_permission(role: Role, permission: Permission) -> bool:
    """Check if a role has a specific permission in the default table."""
    return DEFAULT_REGISTRY.has_permission(role, permission)
