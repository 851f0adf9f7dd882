"""
Account sign-up and sample identity seeding tests.
"""

import pytest

from database.memory_store import InMemoryStore
from domain.aggregates import EntityType, SubscriptionStatus, SubscriptionTier
from domain.errors import DuplicateAccount, InvalidTransition, PersistenceError
from rbac.roles import Role
from workflow.accounts import SAMPLE_IDENTITIES, find_identity_by_email, seed_sample_identities, sign_up_agency


class AgencyWriteFailsStore(InMemoryStore):
    """Store whose agency table rejects writes while broken is set."""

    def __init__(self):
        super().__init__()
        self.broken = True

    def create(self, entity_type, fields):
        if self.broken and entity_type == EntityType.AGENCY:
            raise PersistenceError("agencies table unavailable")
        return super().create(entity_type, fields)


class TestSignUpAgency:
    """Agency self sign-up."""

    def test_creates_identity_and_agency(self, store):
        identity, agency = sign_up_agency(
            store, "  Hello@Recruit.Example ", "Amina O.", {"name": "Recruit Co", "country": "Kenya"}
        )

        assert identity.role == Role.AGENCY
        assert identity.email == "hello@recruit.example"
        assert identity.display_name == "Amina O."
        assert agency.owner_identity_id == identity.id
        assert agency.name == "Recruit Co"
        assert agency.country == "Kenya"
        assert agency.subscription_tier == SubscriptionTier.BASIC
        assert agency.subscription_status == SubscriptionStatus.TRIAL

    def test_role_is_never_taken_from_input(self, store):
        identity, agency = sign_up_agency(
            store, "x@example.com", "X", {"name": "X Ltd", "role": "admin", "owner_identity_id": "someone"}
        )
        assert identity.role == Role.AGENCY
        assert agency.owner_identity_id == identity.id

    def test_agency_name_falls_back_to_display_name(self, store):
        _, agency = sign_up_agency(store, "y@example.com", "Y Staffing", {})
        assert agency.name == "Y Staffing"

    def test_duplicate_email_case_insensitive(self, store):
        sign_up_agency(store, "dup@example.com", "First", {"name": "First"})

        with pytest.raises(DuplicateAccount):
            sign_up_agency(store, "DUP@example.com", "Second", {"name": "Second"})

        assert len(store.find_where(EntityType.IDENTITY, {})) == 1
        assert len(store.find_where(EntityType.AGENCY, {})) == 1

    @pytest.mark.parametrize("email,name,fields", [
        ("", "Name", {"name": "Agency"}),
        ("   ", "Name", {"name": "Agency"}),
        ("z@example.com", "", {}),
    ])
    def test_missing_required_fields(self, store, email, name, fields):
        with pytest.raises(InvalidTransition):
            sign_up_agency(store, email, name, fields)
        assert store.find_where(EntityType.IDENTITY, {}) == []

    def test_invalid_agency_field_writes_nothing(self, store):
        with pytest.raises(InvalidTransition) as exc_info:
            sign_up_agency(store, "a@example.com", "A", {"name": "A", "subscription_status": "bogus"})

        assert exc_info.value.details["field"] == "subscription_status"
        assert store.find_where(EntityType.IDENTITY, {}) == []
        assert store.find_where(EntityType.AGENCY, {}) == []

        identity, agency = sign_up_agency(store, "a@example.com", "A", {"name": "A"})
        assert agency.owner_identity_id == identity.id

    def test_failed_agency_write_removes_identity(self):
        store = AgencyWriteFailsStore()

        with pytest.raises(PersistenceError):
            sign_up_agency(store, "b@example.com", "B", {"name": "B"})
        assert store.find_where(EntityType.IDENTITY, {}) == []

        store.broken = False
        identity, agency = sign_up_agency(store, "b@example.com", "B", {"name": "B"})
        assert agency.owner_identity_id == identity.id


class TestSeedSampleIdentities:
    """One sample identity per role."""

    def test_seed_creates_one_per_role(self, store):
        identities = seed_sample_identities(store)

        assert {i.role for i in identities} == set(Role)
        assert [i.email for i in identities] == [s["email"] for s in SAMPLE_IDENTITIES]

        agency_identity = find_identity_by_email(store, "agency@maven.co.ke")
        agencies = store.find_where(EntityType.AGENCY, {"owner_identity_id": agency_identity.id})
        assert len(agencies) == 1
        assert agencies[0].subscription_status == SubscriptionStatus.ACTIVE
        assert agencies[0].subscription_tier == SubscriptionTier.PROFESSIONAL

    def test_seed_is_idempotent(self, store):
        first = seed_sample_identities(store)
        second = seed_sample_identities(store)

        assert [i.id for i in first] == [i.id for i in second]
        assert len(store.find_where(EntityType.IDENTITY, {})) == len(SAMPLE_IDENTITIES)
        assert len(store.find_where(EntityType.AGENCY, {})) == 1

    def test_seeded_agency_can_post(self, store, engine, request_fields):
        from rbac.context import Session

        seed_sample_identities(store)
        identity = find_identity_by_email(store, "agency@maven.co.ke")

        request = engine.create_hiring_request(Session(identity=identity), request_fields())
        assert request.job_title == "Warehouse Associate"
