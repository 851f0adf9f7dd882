"""
Domain Aggregates for the Maven staffing platform.

Identity, Agency, HiringRequest and Application are immutable values.
A status change never edits an instance in place; the workflow engine
asks the store for a new version and receives a new instance back.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rbac.roles import Role


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so deadlines compare safely."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EntityType(str, Enum):
    """Collections known to the persistence store."""
    IDENTITY = "identities"
    AGENCY = "agencies"
    HIRING_REQUEST = "hiring_requests"
    APPLICATION = "applications"


# =============================================================================
# IDENTITY
# =============================================================================

class Identity(BaseModel):
    """
    An authenticated actor with exactly one role.

    The role is fixed at account creation and is never taken from
    request data.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    role: Role
    display_name: str = ""
    created_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# AGENCY
# =============================================================================

class SubscriptionTier(str, Enum):
    """Agency subscription plans."""
    BASIC = "basic"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    """Agency subscription state."""
    ACTIVE = "active"
    TRIAL = "trial"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class Agency(BaseModel):
    """A staffing agency, owned by one agency identity."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str = ""
    phone: str = ""
    country: str = ""
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC
    subscription_status: SubscriptionStatus = SubscriptionStatus.TRIAL
    owner_identity_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# HIRING REQUEST
# =============================================================================

class HiringRequestStatus(str, Enum):
    """Lifecycle of a hiring request."""
    PENDING = "pending"              # Initial, waiting for the Maven team
    IN_PROGRESS = "in_progress"      # Team is sourcing candidates
    FULFILLED = "fulfilled"          # Terminal
    CANCELLED = "cancelled"          # Terminal

    @property
    def is_terminal(self) -> bool:
        return self in (HiringRequestStatus.FULFILLED, HiringRequestStatus.CANCELLED)

    @property
    def accepts_applications(self) -> bool:
        return self in (HiringRequestStatus.PENDING, HiringRequestStatus.IN_PROGRESS)


class HiringRequest(BaseModel):
    """
    Agency-authored demand for a quantity of positions.

    Invariants:
    - agency_id never changes after creation
    - status only moves forward along the hiring request graph
    """

    model_config = ConfigDict(frozen=True)

    id: str
    agency_id: str
    job_title: str
    quantity: int = Field(ge=1)
    destination_country: str
    requirements: str = ""
    salary_range: str = ""
    status: HiringRequestStatus = HiringRequestStatus.PENDING
    deadline: datetime
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("deadline", "created_at", "updated_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return as_utc(value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the application deadline has passed."""
        return as_utc(now or utcnow()) >= self.deadline

    def is_open(self, now: Optional[datetime] = None) -> bool:
        """Open for applications: pending or in progress, and not expired."""
        return self.status.accepts_applications and not self.is_expired(now)


# =============================================================================
# APPLICATION
# =============================================================================

class ApplicationStatus(str, Enum):
    """Lifecycle of a talent's application."""
    APPLIED = "applied"
    UNDER_REVIEW = "under_review"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    ACCEPTED = "accepted"            # Terminal
    REJECTED = "rejected"            # Terminal
    WITHDRAWN = "withdrawn"          # Terminal, candidate-initiated

    @property
    def is_terminal(self) -> bool:
        return self in (
            ApplicationStatus.ACCEPTED,
            ApplicationStatus.REJECTED,
            ApplicationStatus.WITHDRAWN,
        )


class Application(BaseModel):
    """
    A talent's candidacy against one hiring request.

    hiring_request_id and candidate_id never change after creation.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    hiring_request_id: str
    candidate_id: str
    status: ApplicationStatus = ApplicationStatus.APPLIED
    applied_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("applied_at", "updated_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return as_utc(value)


# An application in one of these statuses blocks a second one by the same
# candidate for the same hiring request
LIVE_APPLICATION_STATUSES = frozenset(s for s in ApplicationStatus if not s.is_terminal)


ENTITY_MODELS = {
    EntityType.IDENTITY: Identity,
    EntityType.AGENCY: Agency,
    EntityType.HIRING_REQUEST: HiringRequest,
    EntityType.APPLICATION: Application,
}

# Fields a conditional update may never change
IMMUTABLE_FIELDS = {
    EntityType.IDENTITY: frozenset({"id", "role", "created_at"}),
    EntityType.AGENCY: frozenset({"id", "owner_identity_id", "created_at"}),
    EntityType.HIRING_REQUEST: frozenset({"id", "agency_id", "created_at"}),
    EntityType.APPLICATION: frozenset({"id", "hiring_request_id", "candidate_id", "applied_at"}),
}
