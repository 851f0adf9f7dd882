"""
Access Policy Loader.

Loads the role -> permission table and the per-edge role assignments of the
workflow graphs from a YAML file, so a deployment can change who may do
what without code changes.

Only role assignments are configurable. The shape of each lifecycle graph
(which edges exist, which states are terminal) and ownership rules are fixed.
Owner-only edges (withdrawing an application) cannot be granted to any role.

File format:

    role_permissions:
      team: [canAccessAdmin, canViewAllRequests]
    workflows:
      hiring_request:
        create: [agency]
        transitions:
          "pending -> in_progress": [admin, team]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from rbac.permissions import DEFAULT_REGISTRY, Permission, RoleRegistry
from rbac.roles import Role
from workflow.graph import APPLICATION_GRAPH, HIRING_REQUEST_GRAPH, TransitionGraph

from .settings import get_settings

logger = logging.getLogger(__name__)


class PolicyError(ValueError):
    """Access policy file is malformed or references unknown names."""


@dataclass(frozen=True)
class AccessPolicy:
    """Everything the core needs to authorize requests."""
    registry: RoleRegistry = DEFAULT_REGISTRY
    hiring_request_graph: TransitionGraph = HIRING_REQUEST_GRAPH
    application_graph: TransitionGraph = APPLICATION_GRAPH
    source: Optional[str] = None


def _roles(values: Any, where: str) -> List[Role]:
    if not isinstance(values, list):
        raise PolicyError(f"{where}: expected a list of roles")
    roles = []
    for value in values:
        try:
            roles.append(Role(value))
        except ValueError:
            raise PolicyError(f"{where}: unknown role '{value}'") from None
    return roles


def _permissions(values: Any, where: str) -> List[Permission]:
    if not isinstance(values, list):
        raise PolicyError(f"{where}: expected a list of permissions")
    permissions = []
    for value in values:
        try:
            permissions.append(Permission(value))
        except ValueError:
            raise PolicyError(f"{where}: unknown permission '{value}'") from None
    return permissions


def _edge(graph: TransitionGraph, key: str, where: str) -> Tuple[Any, Any]:
    parts = [p.strip() for p in str(key).split("->")]
    if len(parts) != 2:
        raise PolicyError(f"{where}: edge '{key}' must look like 'source -> target'")
    try:
        source = graph.status_type(parts[0])
        target = graph.status_type(parts[1])
    except ValueError:
        raise PolicyError(f"{where}: unknown status in edge '{key}'") from None
    if graph.rule_for(source, target) is None:
        raise PolicyError(f"{where}: '{key}' is not an edge of the {graph.name} lifecycle")
    return source, target


def _apply_workflow(graph: TransitionGraph, section: Mapping[str, Any], where: str) -> TransitionGraph:
    if "create" in section:
        graph = graph.with_creator_roles(_roles(section["create"], f"{where}.create"))

    transitions = section.get("transitions") or {}
    if not isinstance(transitions, Mapping):
        raise PolicyError(f"{where}.transitions: expected a mapping")

    overrides = {}
    for key, roles in transitions.items():
        edge = _edge(graph, key, f"{where}.transitions")
        roles = _roles(roles, f"{where}.transitions['{key}']")
        rule = graph.rule_for(*edge)
        # Owner-only edges stay owner-only
        if rule.owner and not rule.roles and roles:
            raise PolicyError(f"{where}.transitions: '{key}' is owner-only and cannot be granted to roles")
        overrides[edge] = roles
    return graph.with_role_overrides(overrides)


def build_policy(data: Mapping[str, Any], source: Optional[str] = None) -> AccessPolicy:
    """Build an AccessPolicy from parsed YAML data, starting from the defaults."""
    if not isinstance(data, Mapping):
        raise PolicyError("Access policy must be a mapping")

    registry = DEFAULT_REGISTRY
    role_section = data.get("role_permissions") or {}
    if not isinstance(role_section, Mapping):
        raise PolicyError("role_permissions: expected a mapping")
    overrides: Dict[Role, Iterable[Permission]] = {}
    for role_name, perms in role_section.items():
        role = _roles([role_name], "role_permissions")[0]
        overrides[role] = _permissions(perms, f"role_permissions.{role_name}")
    if overrides:
        registry = registry.with_overrides(overrides)

    workflows = data.get("workflows") or {}
    if not isinstance(workflows, Mapping):
        raise PolicyError("workflows: expected a mapping")

    known = {"hiring_request", "application"}
    unknown = set(workflows) - known
    if unknown:
        raise PolicyError(f"workflows: unknown entries {sorted(unknown)}")

    hiring_graph = HIRING_REQUEST_GRAPH
    if "hiring_request" in workflows:
        hiring_graph = _apply_workflow(hiring_graph, workflows["hiring_request"] or {}, "workflows.hiring_request")

    application_graph = APPLICATION_GRAPH
    if "application" in workflows:
        application_graph = _apply_workflow(application_graph, workflows["application"] or {}, "workflows.application")

    return AccessPolicy(
        registry=registry,
        hiring_request_graph=hiring_graph,
        application_graph=application_graph,
        source=source,
    )


def load_policy(path: Optional[Path]) -> AccessPolicy:
    """
    Load the access policy from a YAML file.

    A missing path means built-in defaults.
    """
    if path is None:
        logger.info("No access policy file configured, using built-in defaults")
        return AccessPolicy()

    path = Path(path)
    if not path.exists():
        raise PolicyError(f"Access policy file not found: {path}")

    logger.info(f"Loading access policy from {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise PolicyError(f"Invalid YAML in {path}: {e}") from e

    return build_policy(data, source=str(path))


@lru_cache(maxsize=1)
def get_access_policy() -> AccessPolicy:
    """Policy for this process, loaded once from settings.policy_file."""
    return load_policy(get_settings().policy_file)
