"""
Maven Staffing - Role Definitions

4 roles, one per identity:

    PLATFORM - Maven internal
    ├── admin   - Full platform access
    └── team    - Operations staff (review requests, move candidates)

    CUSTOMERS
    ├── agency  - Staffing agency posting hiring requests
    └── talent  - Job seeker applying to hiring requests
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional, Set, Union


class Role(str, Enum):
    """
    All roles in the system.

    Naming convention: UPPER_SNAKE_CASE for enum, lower_snake_case for value.
    """

    ADMIN = "admin"
    """
    Full platform access.
    Who: Maven administrators
    """

    TEAM = "team"
    """
    Platform operations. Reviews hiring requests and applications.
    Who: Maven team members
    """

    AGENCY = "agency"
    """
    Staffing agency. Creates and manages its own hiring requests.
    Who: Agency partners (created by agency sign-up)
    """

    TALENT = "talent"
    """
    Job seeker. Applies to open hiring requests.
    Who: Candidates
    """


@dataclass(frozen=True)
class RoleInfo:
    """Complete information about a role."""
    role: Role
    name: str
    description: str
    default_route: str
    is_platform: bool  # Maven internal staff


# =============================================================================
# ROLE REGISTRY
# =============================================================================

ROLES: dict[Role, RoleInfo] = {
    Role.ADMIN: RoleInfo(
        role=Role.ADMIN,
        name="Administrator",
        description="Full platform access",
        default_route="/dashboard",
        is_platform=True,
    ),
    Role.TEAM: RoleInfo(
        role=Role.TEAM,
        name="Maven Team",
        description="Operations staff - review requests and applications",
        default_route="/admin",
        is_platform=True,
    ),
    Role.AGENCY: RoleInfo(
        role=Role.AGENCY,
        name="Agency Partner",
        description="Staffing agency posting hiring requests",
        default_route="/agency/dashboard",
        is_platform=False,
    ),
    Role.TALENT: RoleInfo(
        role=Role.TALENT,
        name="Talent/Candidate",
        description="Job seeker applying to hiring requests",
        default_route="/talent/dashboard",
        is_platform=False,
    ),
}

# Roles allowed to drive workflow progression
PLATFORM_ROLES: Set[Role] = {role for role, info in ROLES.items() if info.is_platform}

LOGIN_ROUTE = "/login"


def parse_role(value: Union[Role, str, None]) -> Optional[Role]:
    """Coerce a raw value to a Role, or None if it is not a known role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def get_role_info(role: Role) -> RoleInfo:
    """Get information about a role."""
    return ROLES[role]


def get_default_route(role: Union[Role, str, None]) -> str:
    """Landing route for a role; unknown roles go to the login page."""
    parsed = parse_role(role)
    if parsed is None:
        return LOGIN_ROUTE
    return ROLES[parsed].default_route
