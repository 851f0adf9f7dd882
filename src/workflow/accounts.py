"""
Maven Staffing - Accounts

Agency sign-up and sample identity seeding.

Sign-up always creates an identity with role agency plus the agency it
owns; the role is never taken from the caller. Agency fields are validated
before the identity is written, and the identity is removed again if the
agency cannot be stored.

Usage:
    python -m workflow.accounts      # seed sample identities into the SQL store
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from domain.aggregates import Agency, EntityType, Identity, SubscriptionStatus, SubscriptionTier, utcnow
from domain.errors import DuplicateAccount, InvalidTransition
from domain.repositories import PersistenceStore
from rbac.roles import Role

logger = logging.getLogger(__name__)

# Fields a new agency may set about itself
AGENCY_FIELDS = ("name", "phone", "country", "subscription_tier", "subscription_status")


# =============================================================================
# SAMPLE IDENTITIES
# =============================================================================

SAMPLE_IDENTITIES: List[Dict[str, Any]] = [
    {"email": "admin@maven.co.ke", "role": Role.ADMIN, "display_name": "Maven Administrator"},
    {"email": "agency@maven.co.ke", "role": Role.AGENCY, "display_name": "Sample Agency"},
    {"email": "talent@maven.co.ke", "role": Role.TALENT, "display_name": "Sample Talent"},
    {"email": "team@maven.co.ke", "role": Role.TEAM, "display_name": "Maven Team Member"},
]

SAMPLE_AGENCY = {
    "phone": "+254700000000",
    "country": "Kenya",
    "subscription_tier": SubscriptionTier.PROFESSIONAL,
    "subscription_status": SubscriptionStatus.ACTIVE,
}


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_identity_by_email(store: PersistenceStore, email: str) -> Optional[Identity]:
    matches = store.find_where(EntityType.IDENTITY, {"email": _normalize_email(email)})
    return matches[0] if matches else None


def sign_up_agency(
    store: PersistenceStore,
    email: str,
    display_name: str,
    agency_fields: Mapping[str, Any],
) -> Tuple[Identity, Agency]:
    """
    Create an agency identity and the agency it owns.

    Raises:
        InvalidTransition: missing email or agency name, or invalid agency fields
        DuplicateAccount: an identity with this email already exists
    """
    email = _normalize_email(email)
    if not email:
        raise InvalidTransition("Sign-up blocked: email is required", field="email")

    name = str(agency_fields.get("name") or display_name or "").strip()
    if not name:
        raise InvalidTransition("Sign-up blocked: agency name is required", field="name")

    if find_identity_by_email(store, email) is not None:
        raise DuplicateAccount("An account with this email already exists", email=email)

    now = utcnow()
    values = {key: agency_fields[key] for key in AGENCY_FIELDS if key in agency_fields}
    values.update(name=name, email=email, created_at=now, updated_at=now)

    # Reject bad agency fields before anything is written
    try:
        Agency.model_validate(dict(values, id="pending", owner_identity_id="pending"))
    except ValidationError as e:
        field = ".".join(str(part) for part in e.errors()[0]["loc"])
        raise InvalidTransition(f"Sign-up blocked: invalid {field}", field=field) from e

    identity = store.create(EntityType.IDENTITY, {
        "email": email,
        "role": Role.AGENCY,
        "display_name": display_name or name,
    })

    try:
        agency = store.create(EntityType.AGENCY, dict(values, owner_identity_id=identity.id))
    except Exception:
        logger.error("Agency creation failed, removing its identity", extra={"identity_id": identity.id})
        store.delete(EntityType.IDENTITY, identity.id)
        raise

    logger.info("Agency signed up", extra={"identity_id": identity.id, "agency_id": agency.id})
    return identity, agency


def seed_sample_identities(store: PersistenceStore) -> List[Identity]:
    """
    Create one identity per role (plus the sample agency record).

    Idempotent: identities whose email already exists are left as they are.
    """
    identities = []
    for sample in SAMPLE_IDENTITIES:
        existing = find_identity_by_email(store, sample["email"])
        if existing is not None:
            logger.info(f"Sample identity {sample['email']} already exists, skipping")
            identities.append(existing)
            continue

        if sample["role"] == Role.AGENCY:
            identity, _ = sign_up_agency(
                store,
                sample["email"],
                sample["display_name"],
                dict(SAMPLE_AGENCY, name=sample["display_name"]),
            )
        else:
            identity = store.create(EntityType.IDENTITY, dict(sample))

        logger.info(f"Created sample identity {identity.email} with role {identity.role.value}")
        identities.append(identity)

    return identities


def main() -> None:
    from config.logging_setup import configure_logging
    from config.settings import get_settings
    from database.connection import get_sql_store

    settings = get_settings()
    configure_logging(settings)

    store = get_sql_store()
    for identity in seed_sample_identities(store):
        print(f"  {identity.role.value:8s} {identity.email:24s} {identity.id}")


if __name__ == "__main__":
    main()
