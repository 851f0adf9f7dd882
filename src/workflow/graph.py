"""
Status Transition Graphs

One explicit table per entity type, checked by one shared validator.
Each edge lists the roles that may trigger it and whether the entity's
owner (the authoring agency, or the applying candidate) may trigger it.

HiringRequest:
    pending -> in_progress -> fulfilled
    pending | in_progress -> cancelled

Application:
    applied -> under_review -> interview_scheduled -> accepted
    applied | under_review | interview_scheduled -> rejected
    applied -> withdrawn
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Type

from domain.aggregates import ApplicationStatus, HiringRequestStatus
from domain.errors import AuthorizationDenied, InvalidTransition
from rbac.roles import PLATFORM_ROLES, Role


@dataclass(frozen=True)
class TransitionRule:
    """One allowed edge and who may use it."""
    source: Enum
    target: Enum
    roles: FrozenSet[Role] = frozenset()
    owner: bool = False

    def permits(self, role: Optional[Role], is_owner: bool) -> bool:
        if role is not None and role in self.roles:
            return True
        return self.owner and is_owner

    def describe(self) -> dict:
        return {
            "from": self.source.value,
            "to": self.target.value,
            "roles": sorted(r.value for r in self.roles),
            "owner": self.owner,
        }


class TransitionGraph:
    """Immutable lifecycle graph for one entity type."""

    def __init__(
        self,
        name: str,
        status_type: Type[Enum],
        initial: Enum,
        creator_roles: Iterable[Role],
        rules: Iterable[TransitionRule],
    ):
        self.name = name
        self.status_type = status_type
        self.initial = initial
        self.creator_roles: FrozenSet[Role] = frozenset(creator_roles)
        self._rules: Dict[Tuple[Enum, Enum], TransitionRule] = {
            (rule.source, rule.target): rule for rule in rules
        }

    def rule_for(self, source: Enum, target: Enum) -> Optional[TransitionRule]:
        return self._rules.get((source, target))

    def targets_from(self, source: Enum) -> List[Enum]:
        return [target for (src, target) in self._rules if src == source]

    def is_terminal(self, status: Enum) -> bool:
        return not self.targets_from(status)

    def rules(self) -> List[TransitionRule]:
        return list(self._rules.values())

    def with_role_overrides(self, overrides: Mapping[Tuple[Enum, Enum], Iterable[Role]]) -> "TransitionGraph":
        """
        New graph with different role sets on existing edges.

        Edges cannot be added or removed this way.
        """
        rules = dict(self._rules)
        for edge, roles in overrides.items():
            if edge not in rules:
                source, target = edge
                raise ValueError(f"{self.name}: no edge {source.value} -> {target.value}")
            rules[edge] = replace(rules[edge], roles=frozenset(roles))
        return TransitionGraph(self.name, self.status_type, self.initial, self.creator_roles, rules.values())

    def with_creator_roles(self, roles: Iterable[Role]) -> "TransitionGraph":
        return TransitionGraph(self.name, self.status_type, self.initial, roles, self._rules.values())


def check_transition(
    graph: TransitionGraph,
    current: Enum,
    target: Enum,
    role: Optional[Role],
    is_owner: bool,
) -> TransitionRule:
    """
    Shared validator for every status change.

    Raises:
        InvalidTransition: target is not reachable from current in one step
        AuthorizationDenied: the edge exists but this actor may not use it
    """
    rule = graph.rule_for(current, target)
    if rule is None:
        raise InvalidTransition(
            f"{graph.name} cannot move from '{current.value}' to '{target.value}'",
            entity=graph.name,
            current_status=current.value,
            target_status=target.value,
            allowed_targets=[t.value for t in graph.targets_from(current)],
        )

    if not rule.permits(role, is_owner):
        raise AuthorizationDenied(
            f"Role '{role.value if role else None}' may not move {graph.name} "
            f"from '{current.value}' to '{target.value}'",
            entity=graph.name,
            current_status=current.value,
            target_status=target.value,
            rule=rule.describe(),
        )

    return rule


def allowed_targets(graph: TransitionGraph, current: Enum, role: Optional[Role], is_owner: bool) -> List[Enum]:
    """Statuses this actor may request from current."""
    return [
        target for target in graph.targets_from(current)
        if graph.rule_for(current, target).permits(role, is_owner)
    ]


# =============================================================================
# DEFAULT GRAPHS
# =============================================================================

_PLATFORM = frozenset(PLATFORM_ROLES)

HIRING_REQUEST_GRAPH = TransitionGraph(
    name="hiring_request",
    status_type=HiringRequestStatus,
    initial=HiringRequestStatus.PENDING,
    creator_roles={Role.AGENCY},
    rules=[
        TransitionRule(HiringRequestStatus.PENDING, HiringRequestStatus.IN_PROGRESS, _PLATFORM),
        TransitionRule(HiringRequestStatus.IN_PROGRESS, HiringRequestStatus.FULFILLED, _PLATFORM),
        TransitionRule(HiringRequestStatus.PENDING, HiringRequestStatus.CANCELLED, _PLATFORM, owner=True),
        TransitionRule(HiringRequestStatus.IN_PROGRESS, HiringRequestStatus.CANCELLED, _PLATFORM, owner=True),
    ],
)

APPLICATION_GRAPH = TransitionGraph(
    name="application",
    status_type=ApplicationStatus,
    initial=ApplicationStatus.APPLIED,
    creator_roles={Role.TALENT},
    rules=[
        TransitionRule(ApplicationStatus.APPLIED, ApplicationStatus.UNDER_REVIEW, _PLATFORM),
        TransitionRule(ApplicationStatus.UNDER_REVIEW, ApplicationStatus.INTERVIEW_SCHEDULED, _PLATFORM),
        TransitionRule(ApplicationStatus.INTERVIEW_SCHEDULED, ApplicationStatus.ACCEPTED, _PLATFORM),
        TransitionRule(ApplicationStatus.APPLIED, ApplicationStatus.REJECTED, _PLATFORM),
        TransitionRule(ApplicationStatus.UNDER_REVIEW, ApplicationStatus.REJECTED, _PLATFORM),
        TransitionRule(ApplicationStatus.INTERVIEW_SCHEDULED, ApplicationStatus.REJECTED, _PLATFORM),
        TransitionRule(ApplicationStatus.APPLIED, ApplicationStatus.WITHDRAWN, owner=True),
    ],
)


STATUS_DISPLAY_NAMES: Dict[Enum, str] = {
    HiringRequestStatus.PENDING: "Pending",
    HiringRequestStatus.IN_PROGRESS: "In Progress",
    HiringRequestStatus.FULFILLED: "Fulfilled",
    HiringRequestStatus.CANCELLED: "Cancelled",
    ApplicationStatus.APPLIED: "Applied",
    ApplicationStatus.UNDER_REVIEW: "Under Review",
    ApplicationStatus.INTERVIEW_SCHEDULED: "Interview Scheduled",
    ApplicationStatus.ACCEPTED: "Accepted",
    ApplicationStatus.REJECTED: "Rejected",
    ApplicationStatus.WITHDRAWN: "Withdrawn",
}


def get_status_display_name(status: Enum) -> str:
    """Get user-friendly display name for a status."""
    return STATUS_DISPLAY_NAMES.get(status, str(getattr(status, "value", status)).replace("_", " "))
