"""Pytest configuration and fixtures for test suite."""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("MAVEN_ENVIRONMENT", "test")
os.environ.setdefault("MAVEN_DATABASE_URL", "sqlite://")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from database.memory_store import InMemoryStore
from domain.aggregates import EntityType, Identity
from rbac.context import Session
from rbac.roles import Role
from workflow.accounts import sign_up_agency
from workflow.engine import WorkflowEngine


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for deadline checks."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_cached_config():
    """Settings and policy are cached per process; tests start clean."""
    from config.policy import get_access_policy
    from config.settings import get_settings

    get_settings.cache_clear()
    get_access_policy.cache_clear()
    yield
    get_settings.cache_clear()
    get_access_policy.cache_clear()


# =============================================================================
# CORE FIXTURES
# =============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def engine(store, clock):
    return WorkflowEngine(store, clock=clock)


def _identity(store, email: str, role: Role, name: str) -> Identity:
    return store.create(EntityType.IDENTITY, {"email": email, "role": role, "display_name": name})


# =============================================================================
# IDENTITIES & SESSIONS
# =============================================================================

@pytest.fixture
def admin(store):
    return _identity(store, "admin@maven.co.ke", Role.ADMIN, "Maven Administrator")


@pytest.fixture
def team(store):
    return _identity(store, "team@maven.co.ke", Role.TEAM, "Maven Team Member")


@pytest.fixture
def talent(store):
    return _identity(store, "talent@maven.co.ke", Role.TALENT, "Sample Talent")


@pytest.fixture
def other_talent(store):
    return _identity(store, "wanjiru@example.com", Role.TALENT, "Wanjiru K.")


@pytest.fixture
def agency_account(store):
    """(identity, agency) for the sample agency."""
    return sign_up_agency(store, "agency@maven.co.ke", "Sample Agency", {"name": "Sample Agency", "country": "Kenya"})


@pytest.fixture
def other_agency_account(store):
    return sign_up_agency(store, "ops@gulfstaffing.example", "Gulf Staffing", {"name": "Gulf Staffing"})


@pytest.fixture
def admin_session(admin):
    return Session(identity=admin)


@pytest.fixture
def team_session(team):
    return Session(identity=team)


@pytest.fixture
def talent_session(talent):
    return Session(identity=talent)


@pytest.fixture
def other_talent_session(other_talent):
    return Session(identity=other_talent)


@pytest.fixture
def agency_session(agency_account):
    return Session(identity=agency_account[0])


@pytest.fixture
def other_agency_session(other_agency_account):
    return Session(identity=other_agency_account[0])


@pytest.fixture
def anonymous_session():
    return Session.anonymous()


# =============================================================================
# WORKFLOW DATA
# =============================================================================

@pytest.fixture
def request_fields(clock):
    """Factory for valid hiring request fields."""

    def build(**overrides):
        fields = {
            "job_title": "Warehouse Associate",
            "quantity": 50,
            "destination_country": "United Arab Emirates",
            "requirements": "Forklift certification preferred",
            "salary_range": "AED 1,800 - 2,200",
            "deadline": clock.now + timedelta(days=30),
        }
        fields.update(overrides)
        return fields

    return build


@pytest.fixture
def hiring_request(engine, agency_session, request_fields):
    """A pending hiring request posted by the sample agency."""
    return engine.create_hiring_request(agency_session, request_fields())
