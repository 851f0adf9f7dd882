"""
SQLAlchemy ORM Models for the Maven staffing platform.

One table per entity type known to the persistence store. Status columns
hold the enum values ("pending", "applied", ...) so rows stay readable
outside the application.

Architecture:
- Primary Keys: 32-char hex ids assigned by the store
- Ownership columns (agency_id, candidate_id, owner_identity_id) indexed
- Identity email and agency owner unique
- At most one live application per (hiring request, candidate), as a
  partial unique index
"""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import declarative_base

from domain.aggregates import (
    LIVE_APPLICATION_STATUSES,
    ApplicationStatus,
    EntityType,
    HiringRequestStatus,
    SubscriptionStatus,
    SubscriptionTier,
    utcnow,
)
from rbac.roles import Role

Base = declarative_base()

_LIVE_APPLICATION_SQL = "status IN ({})".format(
    ", ".join(f"'{s.value}'" for s in sorted(LIVE_APPLICATION_STATUSES, key=lambda s: s.value))
)


def _values_enum(enum_cls, name: str) -> Enum:
    """Store enum values rather than member names."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class IdentityRecord(Base):
    """Authenticated actor with exactly one role."""
    __tablename__ = "identities"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(_values_enum(Role, "role"), nullable=False, index=True)
    display_name = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class AgencyRecord(Base):
    """Staffing agency, one per owning identity."""
    __tablename__ = "agencies"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    country = Column(String(100), nullable=False, default="")
    subscription_tier = Column(_values_enum(SubscriptionTier, "subscription_tier"), nullable=False)
    subscription_status = Column(_values_enum(SubscriptionStatus, "subscription_status"), nullable=False)
    owner_identity_id = Column(String(64), ForeignKey("identities.id"), nullable=False, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class HiringRequestRecord(Base):
    """Agency-authored demand for a quantity of positions."""
    __tablename__ = "hiring_requests"

    id = Column(String(64), primary_key=True)
    agency_id = Column(String(64), ForeignKey("agencies.id"), nullable=False, index=True)
    job_title = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    destination_country = Column(String(100), nullable=False)
    requirements = Column(Text, nullable=False, default="")
    salary_range = Column(String(100), nullable=False, default="")
    status = Column(
        _values_enum(HiringRequestStatus, "hiring_request_status"),
        nullable=False,
        default=HiringRequestStatus.PENDING,
        index=True,
    )
    deadline = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ApplicationRecord(Base):
    """A talent's candidacy against one hiring request."""
    __tablename__ = "applications"

    id = Column(String(64), primary_key=True)
    hiring_request_id = Column(String(64), ForeignKey("hiring_requests.id"), nullable=False)
    candidate_id = Column(String(64), ForeignKey("identities.id"), nullable=False)
    status = Column(
        _values_enum(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.APPLIED,
        index=True,
    )

    applied_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_applications_request_candidate", "hiring_request_id", "candidate_id"),
        Index(
            "uq_applications_live",
            "hiring_request_id",
            "candidate_id",
            unique=True,
            sqlite_where=text(_LIVE_APPLICATION_SQL),
            postgresql_where=text(_LIVE_APPLICATION_SQL),
        ),
    )


RECORD_MODELS = {
    EntityType.IDENTITY: IdentityRecord,
    EntityType.AGENCY: AgencyRecord,
    EntityType.HIRING_REQUEST: HiringRequestRecord,
    EntityType.APPLICATION: ApplicationRecord,
}
