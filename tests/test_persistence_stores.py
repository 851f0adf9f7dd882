"""
Persistence store tests.

Both stores honour the same contract, so the contract tests run against
each of them.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from database.connection import create_sql_store
from database.memory_store import InMemoryStore
from domain.aggregates import ApplicationStatus, EntityType, HiringRequestStatus
from domain.errors import Conflict, DuplicateApplication, ErrorKind, NotFound, PersistenceError
from rbac.roles import Role
from workflow.engine import EntityRef, WorkflowEngine

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request):
    if request.param == "memory":
        return InMemoryStore()
    return create_sql_store("sqlite://")


def _seed_request(store, **overrides):
    owner = store.create(EntityType.IDENTITY, {"email": "owner@example.com", "role": Role.AGENCY})
    agency = store.create(EntityType.AGENCY, {"name": "Acme Staffing", "owner_identity_id": owner.id})
    fields = {
        "agency_id": agency.id,
        "job_title": "Caregiver",
        "quantity": 5,
        "destination_country": "Saudi Arabia",
        "deadline": NOW + timedelta(days=10),
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return store.create(EntityType.HIRING_REQUEST, fields)


# =============================================================================
# STORE CONTRACT
# =============================================================================

class TestStoreContract:
    """Behaviour shared by every PersistenceStore."""

    def test_create_assigns_id(self, any_store):
        identity = any_store.create(EntityType.IDENTITY, {"email": "a@example.com", "role": Role.TALENT})
        assert identity.id
        assert any_store.get(EntityType.IDENTITY, identity.id).email == "a@example.com"

    def test_create_keeps_given_id(self, any_store):
        identity = any_store.create(
            EntityType.IDENTITY, {"id": "fixed-id", "email": "b@example.com", "role": Role.TEAM}
        )
        assert identity.id == "fixed-id"

    def test_get_missing(self, any_store):
        with pytest.raises(NotFound) as exc_info:
            any_store.get(EntityType.HIRING_REQUEST, "missing")
        assert exc_info.value.details == {"entity_type": "hiring_requests", "entity_id": "missing"}

    def test_round_trip_keeps_values(self, any_store):
        request = _seed_request(any_store)
        loaded = any_store.get(EntityType.HIRING_REQUEST, request.id)

        assert loaded.status == HiringRequestStatus.PENDING
        assert loaded.deadline == NOW + timedelta(days=10)
        assert loaded.quantity == 5

    def test_find_where(self, any_store):
        request = _seed_request(any_store)

        assert [r.id for r in any_store.find_where(EntityType.HIRING_REQUEST, {"agency_id": request.agency_id})] == [
            request.id
        ]
        assert any_store.find_where(EntityType.HIRING_REQUEST, {"agency_id": "other"}) == []
        assert len(any_store.find_where(EntityType.HIRING_REQUEST, {})) == 1

    def test_find_where_by_status(self, any_store):
        request = _seed_request(any_store)
        found = any_store.find_where(EntityType.HIRING_REQUEST, {"status": HiringRequestStatus.PENDING})
        assert [r.id for r in found] == [request.id]

    def test_find_where_unknown_field(self, any_store):
        with pytest.raises(PersistenceError):
            any_store.find_where(EntityType.HIRING_REQUEST, {"colour": "blue"})

    def test_create_invalid_record(self, any_store):
        with pytest.raises(PersistenceError):
            any_store.create(EntityType.IDENTITY, {"email": "x@example.com", "role": "superuser"})

    def test_conditional_update(self, any_store):
        request = _seed_request(any_store)

        updated = any_store.conditional_update(
            EntityType.HIRING_REQUEST,
            request.id,
            HiringRequestStatus.PENDING,
            {"status": HiringRequestStatus.IN_PROGRESS, "updated_at": NOW + timedelta(hours=1)},
        )

        assert updated.status == HiringRequestStatus.IN_PROGRESS
        assert updated.updated_at == NOW + timedelta(hours=1)
        assert any_store.get(EntityType.HIRING_REQUEST, request.id).status == HiringRequestStatus.IN_PROGRESS

    def test_conditional_update_stale_status(self, any_store):
        request = _seed_request(any_store, status=HiringRequestStatus.IN_PROGRESS)

        with pytest.raises(Conflict) as exc_info:
            any_store.conditional_update(
                EntityType.HIRING_REQUEST,
                request.id,
                HiringRequestStatus.PENDING,
                {"status": HiringRequestStatus.CANCELLED},
            )

        assert exc_info.value.kind == ErrorKind.CONFLICT
        assert exc_info.value.details["actual_status"] == "in_progress"
        assert any_store.get(EntityType.HIRING_REQUEST, request.id).status == HiringRequestStatus.IN_PROGRESS

    def test_conditional_update_missing(self, any_store):
        with pytest.raises(NotFound):
            any_store.conditional_update(
                EntityType.APPLICATION, "missing", ApplicationStatus.APPLIED, {"status": ApplicationStatus.REJECTED}
            )

    def test_immutable_fields_rejected(self, any_store):
        request = _seed_request(any_store)

        with pytest.raises(PersistenceError):
            any_store.conditional_update(
                EntityType.HIRING_REQUEST, request.id, HiringRequestStatus.PENDING, {"agency_id": "stolen"}
            )

        assert any_store.get(EntityType.HIRING_REQUEST, request.id).agency_id == request.agency_id

    def test_entity_without_status(self, any_store):
        identity = any_store.create(EntityType.IDENTITY, {"email": "c@example.com", "role": Role.ADMIN})
        with pytest.raises(PersistenceError):
            any_store.conditional_update(EntityType.IDENTITY, identity.id, "active", {"display_name": "X"})

    def test_second_live_application_refused(self, any_store):
        request = _seed_request(any_store)
        candidate = any_store.create(EntityType.IDENTITY, {"email": "cand@example.com", "role": Role.TALENT})
        fields = {"hiring_request_id": request.id, "candidate_id": candidate.id}
        first = any_store.create(EntityType.APPLICATION, fields)

        with pytest.raises(DuplicateApplication) as exc_info:
            any_store.create(EntityType.APPLICATION, fields)
        assert exc_info.value.details["application_id"] == first.id

        any_store.conditional_update(
            EntityType.APPLICATION, first.id, ApplicationStatus.APPLIED, {"status": ApplicationStatus.WITHDRAWN}
        )
        again = any_store.create(EntityType.APPLICATION, fields)
        assert again.status == ApplicationStatus.APPLIED
        assert len(any_store.find_where(EntityType.APPLICATION, {"candidate_id": candidate.id})) == 2

    def test_delete(self, any_store):
        identity = any_store.create(EntityType.IDENTITY, {"email": "gone@example.com", "role": Role.AGENCY})

        any_store.delete(EntityType.IDENTITY, identity.id)

        with pytest.raises(NotFound):
            any_store.get(EntityType.IDENTITY, identity.id)
        with pytest.raises(NotFound):
            any_store.delete(EntityType.IDENTITY, identity.id)


class TestSqlStore:
    """SQL-specific behaviour."""

    def test_duplicate_email_is_persistence_error(self):
        store = create_sql_store("sqlite://")
        store.create(EntityType.IDENTITY, {"email": "dup@example.com", "role": Role.TALENT})

        with pytest.raises(PersistenceError) as exc_info:
            store.create(EntityType.IDENTITY, {"email": "dup@example.com", "role": Role.TALENT})
        assert exc_info.value.__cause__ is not None

    def test_engine_runs_on_sql_store(self, clock):
        store = create_sql_store("sqlite://")
        engine = WorkflowEngine(store, clock=clock)
        request = _seed_request(store, deadline=clock.now + timedelta(days=5))
        admin = store.create(EntityType.IDENTITY, {"email": "root@example.com", "role": Role.ADMIN})

        from rbac.context import Session

        updated = engine.request_transition(
            Session(identity=admin), EntityRef.hiring_request(request.id), "in_progress"
        )
        assert updated.status == HiringRequestStatus.IN_PROGRESS


# =============================================================================
# CONCURRENCY
# =============================================================================

class BarrierStore(InMemoryStore):
    """Holds every hiring request read until `parties` readers have arrived."""

    def __init__(self, parties: int):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)
        self.armed = False

    def get(self, entity_type, entity_id):
        entity = super().get(entity_type, entity_id)
        if self.armed and entity_type == EntityType.HIRING_REQUEST:
            self.barrier.wait()
        return entity


class TestConcurrentTransitions:
    """Two actors moving the same entity at once."""

    def test_exactly_one_wins(self, clock, request_fields):
        from rbac.context import Session
        from workflow.accounts import sign_up_agency

        store = BarrierStore(parties=2)
        engine = WorkflowEngine(store, clock=clock)
        agency_identity, _ = sign_up_agency(store, "agency@example.com", "Agency", {"name": "Agency"})
        admin = store.create(EntityType.IDENTITY, {"email": "admin@example.com", "role": Role.ADMIN})
        team = store.create(EntityType.IDENTITY, {"email": "team@example.com", "role": Role.TEAM})
        request = engine.create_hiring_request(Session(identity=agency_identity), request_fields())

        store.armed = True
        results = []
        errors = []

        def move(identity):
            try:
                results.append(
                    engine.request_transition(
                        Session(identity=identity), EntityRef.hiring_request(request.id), "in_progress"
                    )
                )
            except Conflict as e:
                errors.append(e)

        threads = [threading.Thread(target=move, args=(who,)) for who in (admin, team)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(results) == 1
        assert len(errors) == 1
        assert results[0].status == HiringRequestStatus.IN_PROGRESS
        store.armed = False
        assert store.get(EntityType.HIRING_REQUEST, request.id).status == HiringRequestStatus.IN_PROGRESS


class ApplicationReadBarrierStore(InMemoryStore):
    """Holds every application lookup until `parties` readers have arrived."""

    def __init__(self, parties: int):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)
        self.armed = False

    def find_where(self, entity_type, criteria):
        found = super().find_where(entity_type, criteria)
        if self.armed and entity_type == EntityType.APPLICATION:
            self.barrier.wait()
        return found


class TestConcurrentApplications:
    """One candidate applying twice at the same moment."""

    def test_only_one_live_application(self, clock, request_fields):
        from rbac.context import Session
        from workflow.accounts import sign_up_agency

        store = ApplicationReadBarrierStore(parties=2)
        engine = WorkflowEngine(store, clock=clock)
        agency_identity, _ = sign_up_agency(store, "agency@example.com", "Agency", {"name": "Agency"})
        talent = store.create(EntityType.IDENTITY, {"email": "talent@example.com", "role": Role.TALENT})
        request = engine.create_hiring_request(Session(identity=agency_identity), request_fields())

        store.armed = True
        results = []
        errors = []

        def apply():
            try:
                results.append(engine.apply(Session(identity=talent), request.id))
            except DuplicateApplication as e:
                errors.append(e)

        threads = [threading.Thread(target=apply) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        store.armed = False

        assert len(results) == 1
        assert len(errors) == 1
        assert [a.id for a in store.find_where(EntityType.APPLICATION, {"candidate_id": talent.id})] == [
            results[0].id
        ]


# =============================================================================
# FAILURE WRAPPING
# =============================================================================

class FailingStore(InMemoryStore):
    """Backend that breaks on writes."""

    def conditional_update(self, entity_type, entity_id, expected_status, new_fields):
        raise OSError("disk full")


class TestFailureWrapping:
    """Unexpected store failures surface as PersistenceError."""

    def test_backend_error_chained(self, clock, request_fields):
        from rbac.context import Session
        from workflow.accounts import sign_up_agency

        store = FailingStore()
        engine = WorkflowEngine(store, clock=clock)
        identity, _ = sign_up_agency(store, "agency@example.com", "Agency", {"name": "Agency"})
        session = Session(identity=identity)
        request = engine.create_hiring_request(session, request_fields())

        with pytest.raises(PersistenceError) as exc_info:
            engine.request_transition(session, EntityRef.hiring_request(request.id), "cancelled")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert store.get(EntityType.HIRING_REQUEST, request.id).status == HiringRequestStatus.PENDING

    def test_workflow_errors_pass_through(self, engine, admin_session):
        with pytest.raises(NotFound):
            engine.get(admin_session, EntityRef.application("nope"))
