"""
Navigation and route protection tables.

Both tables are data and share their Requirement objects. Filtering goes
through the AccessGuard, so the sidebar and page access can never disagree.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .context import Session
from .evaluator import Requirement
from .guard import AccessGuard
from .roles import Role


@dataclass(frozen=True)
class MenuItem:
    id: str
    label: str
    requirement: Requirement

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "requirement": self.requirement.to_dict()}


_ADMIN_ONLY = Requirement(roles=frozenset({Role.ADMIN}))
_PLATFORM = Requirement(roles=frozenset({Role.ADMIN, Role.TEAM}))
_AGENCY = Requirement(roles=frozenset({Role.AGENCY}))
_TALENT = Requirement(roles=frozenset({Role.TALENT}))


# Sidebar order is display order
MENU_ITEMS: Tuple[MenuItem, ...] = (
    MenuItem("dashboard", "Dashboard", _ADMIN_ONLY),
    MenuItem("analytics", "Analytics", _ADMIN_ONLY),
    MenuItem("roles", "Roles", _ADMIN_ONLY),
    MenuItem("talent", "Talent", _ADMIN_ONLY),
    MenuItem("agencies", "Agencies", _ADMIN_ONLY),
    MenuItem("team", "Team", _ADMIN_ONLY),
    MenuItem("settings", "Settings", _ADMIN_ONLY),
    MenuItem("website", "Website", _ADMIN_ONLY),
    MenuItem("agency/dashboard", "Agency Dashboard", _AGENCY),
    MenuItem("agency/new-request", "New Request", _AGENCY),
    MenuItem("talent/dashboard", "Talent Dashboard", _TALENT),
)


# Protected pages. Paths not listed here are public.
ROUTES: Tuple[Tuple[str, Requirement], ...] = (
    ("/admin", _PLATFORM),
    ("/dashboard", _ADMIN_ONLY),
    ("/agency/dashboard", _AGENCY),
    ("/agency/profile", _AGENCY),
    ("/agency/new-request", _AGENCY),
    ("/talent/dashboard", _TALENT),
    ("/talent/applications", _TALENT),
    ("/analytics", _ADMIN_ONLY),
    ("/admin/roles", _ADMIN_ONLY),
    ("/talent", _ADMIN_ONLY),
    ("/agencies", _ADMIN_ONLY),
    ("/agencies/:id", _ADMIN_ONLY),
    ("/team", _ADMIN_ONLY),
    ("/users", _PLATFORM),
    ("/matching", _PLATFORM),
    ("/verification", _PLATFORM),
    ("/reports", _PLATFORM),
    ("/website", _ADMIN_ONLY),
    ("/settings", Requirement(roles=frozenset(Role))),
)


def _matches(pattern: str, path: str) -> bool:
    pattern_parts = pattern.strip("/").split("/")
    path_parts = path.split("?", 1)[0].strip("/").split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    return all(
        (p.startswith(":") and bool(s)) or p == s
        for p, s in zip(pattern_parts, path_parts)
    )


def route_requirement(path: str) -> Optional[Requirement]:
    """Requirement protecting a path, or None for public pages."""
    for pattern, requirement in ROUTES:
        if _matches(pattern, path):
            return requirement
    return None


def list_menu_items(guard: AccessGuard, session: Session) -> List[MenuItem]:
    """Sidebar entries the session may open, in display order."""
    if not session.is_authenticated:
        return []
    return [item for item in MENU_ITEMS if guard.is_granted(session, item.requirement)]
