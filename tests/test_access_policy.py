"""
Access policy loading tests.
"""

from pathlib import Path

import pytest

from config.policy import AccessPolicy, PolicyError, build_policy, get_access_policy, load_policy
from config.settings import DEFAULT_POLICY_FILE
from domain.aggregates import ApplicationStatus, HiringRequestStatus
from domain.errors import AuthorizationDenied
from rbac.permissions import DEFAULT_REGISTRY, Permission
from rbac.roles import Role
from workflow.engine import EntityRef, WorkflowEngine
from workflow.graph import APPLICATION_GRAPH, HIRING_REQUEST_GRAPH


def _edges(graph):
    return [rule.describe() for rule in graph.rules()]


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "policy.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaultPolicy:
    """The shipped YAML matches the built-in tables."""

    def test_shipped_file_matches_defaults(self):
        policy = load_policy(DEFAULT_POLICY_FILE)

        assert policy.registry == DEFAULT_REGISTRY
        assert _edges(policy.hiring_request_graph) == _edges(HIRING_REQUEST_GRAPH)
        assert _edges(policy.application_graph) == _edges(APPLICATION_GRAPH)
        assert policy.hiring_request_graph.creator_roles == {Role.AGENCY}
        assert policy.application_graph.creator_roles == {Role.TALENT}
        assert policy.source == str(DEFAULT_POLICY_FILE)

    def test_no_file_means_defaults(self):
        policy = load_policy(None)
        assert policy == AccessPolicy()
        assert policy.source is None

    def test_withdraw_stays_owner_only(self):
        policy = load_policy(DEFAULT_POLICY_FILE)
        rule = policy.application_graph.rule_for(ApplicationStatus.APPLIED, ApplicationStatus.WITHDRAWN)
        assert rule.roles == frozenset()
        assert rule.owner is True

    def test_get_access_policy_uses_settings(self, monkeypatch, tmp_path):
        path = _write(tmp_path, "role_permissions:\n  talent: []\n")
        monkeypatch.setenv("MAVEN_POLICY_FILE", str(path))

        policy = get_access_policy()

        assert policy.source == str(path)
        assert policy.registry.permissions_for(Role.TALENT) == frozenset()
        assert get_access_policy() is policy


class TestPolicyOverrides:
    """Deployments changing role assignments."""

    def test_role_permission_override(self):
        policy = build_policy({"role_permissions": {"team": ["canAccessAdmin"]}})

        assert policy.registry.permissions_for(Role.TEAM) == {Permission.CAN_ACCESS_ADMIN}
        assert policy.registry.permissions_for(Role.ADMIN) == frozenset(Permission)

    def test_transition_override(self, store, clock, agency_session, team_session, admin_session, request_fields):
        policy = build_policy({
            "workflows": {
                "hiring_request": {"transitions": {"pending -> in_progress": ["admin"]}},
            },
        })
        engine = WorkflowEngine.from_policy(store, policy, clock=clock)
        request = engine.create_hiring_request(agency_session, request_fields())
        ref = EntityRef.hiring_request(request.id)

        with pytest.raises(AuthorizationDenied):
            engine.request_transition(team_session, ref, "in_progress")

        updated = engine.request_transition(admin_session, ref, "in_progress")
        assert updated.status == HiringRequestStatus.IN_PROGRESS
        # Untouched edges keep their defaults
        assert engine.request_transition(team_session, ref, "fulfilled").status == HiringRequestStatus.FULFILLED

    def test_creator_override(self):
        policy = build_policy({"workflows": {"application": {"create": ["talent", "team"]}}})
        assert policy.application_graph.creator_roles == {Role.TALENT, Role.TEAM}

    def test_overrides_leave_defaults_alone(self):
        build_policy({"workflows": {"application": {"transitions": {"applied -> rejected": ["admin"]}}}})
        rule = APPLICATION_GRAPH.rule_for(ApplicationStatus.APPLIED, ApplicationStatus.REJECTED)
        assert rule.roles == {Role.ADMIN, Role.TEAM}


class TestPolicyErrors:
    """Malformed policy files fail loudly."""

    @pytest.mark.parametrize("data", [
        {"role_permissions": {"owner": ["canAccessAdmin"]}},
        {"role_permissions": {"team": ["canFlyPlanes"]}},
        {"role_permissions": {"team": "canAccessAdmin"}},
        {"role_permissions": ["team"]},
        {"workflows": {"invoice": {}}},
        {"workflows": {"hiring_request": {"create": ["robot"]}}},
        {"workflows": {"hiring_request": {"transitions": {"pending -> fulfilled": ["admin"]}}}},
        {"workflows": {"hiring_request": {"transitions": {"pending -> archived": ["admin"]}}}},
        {"workflows": {"hiring_request": {"transitions": {"pending": ["admin"]}}}},
        {"workflows": {"application": {"transitions": ["applied -> rejected"]}}},
    ])
    def test_invalid_policy(self, data):
        with pytest.raises(PolicyError):
            build_policy(data)

    @pytest.mark.parametrize("roles", [["admin"], ["team", "talent"]])
    def test_owner_only_edge_cannot_be_granted(self, roles):
        data = {"workflows": {"application": {"transitions": {"applied -> withdrawn": roles}}}}

        with pytest.raises(PolicyError, match="owner-only"):
            build_policy(data)

    def test_owner_only_edge_may_stay_empty(self):
        data = {"workflows": {"application": {"transitions": {"applied -> withdrawn": []}}}}

        rule = build_policy(data).application_graph.rule_for(ApplicationStatus.APPLIED, ApplicationStatus.WITHDRAWN)
        assert rule.roles == frozenset()
        assert rule.owner is True

    def test_policy_must_be_mapping(self):
        with pytest.raises(PolicyError):
            build_policy(["admin"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(PolicyError):
            load_policy(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path, "role_permissions: [unclosed\n")
        with pytest.raises(PolicyError):
            load_policy(path)

    def test_empty_file_means_defaults(self, tmp_path):
        policy = load_policy(_write(tmp_path, ""))
        assert policy.registry == DEFAULT_REGISTRY
