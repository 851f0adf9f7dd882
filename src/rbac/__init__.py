"""
Maven Staffing - Role-Based Access Control (RBAC)

4-role access model for the staffing platform.

    admin   - Maven administrators (everything)
    team    - Maven operations staff
    agency  - Staffing agencies posting hiring requests
    talent  - Candidates applying to hiring requests

Usage:
    from rbac import AccessGuard, Requirement, Role, Session

    guard = AccessGuard()
    decision = guard.guard(session, Requirement.of(roles=[Role.AGENCY]))
"""

from .roles import Role, RoleInfo, ROLES, PLATFORM_ROLES, get_role_info, get_default_route
from .permissions import (
    Permission,
    PermissionInfo,
    PERMISSIONS,
    DEFAULT_ROLE_PERMISSIONS,
    RoleRegistry,
    get_permission_info,
)
from .evaluator import Allow, Deny, DenyReason, Decision, PermissionEvaluator, Requirement
from .context import IdentityProvider, Session, SessionContext, StaticIdentityProvider
from .guard import AccessGuard, Denied, Granted, GuardDecision
from .menu import MENU_ITEMS, ROUTES, MenuItem, list_menu_items, route_requirement

__all__ = [
    # Roles
    "Role",
    "RoleInfo",
    "ROLES",
    "PLATFORM_ROLES",
    "get_role_info",
    "get_default_route",

    # Permissions
    "Permission",
    "PermissionInfo",
    "PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "RoleRegistry",
    "get_permission_info",

    # Evaluation
    "Allow",
    "Deny",
    "DenyReason",
    "Decision",
    "PermissionEvaluator",
    "Requirement",

    # Session
    "IdentityProvider",
    "Session",
    "SessionContext",
    "StaticIdentityProvider",

    # Guard
    "AccessGuard",
    "Denied",
    "Granted",
    "GuardDecision",

    # Navigation
    "MENU_ITEMS",
    "ROUTES",
    "MenuItem",
    "list_menu_items",
    "route_requirement",
]
