"""
Maven Staffing - Bearer Token Handling

Signed access tokens (PyJWT) and the identity provider that turns a token
back into an Identity.

The token only names the identity. When a store is available the provider
loads the identity from it, so the role always comes from the account
record and never from anything the client sent.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from config.settings import Settings, get_settings
from domain.aggregates import EntityType, Identity
from domain.errors import NotFound
from domain.repositories import PersistenceStore

logger = logging.getLogger(__name__)

TOKEN_TYPE_ACCESS = "access"


# =============================================================================
# TOKEN CREATION
# =============================================================================

def create_access_token(
    identity: Identity,
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token for an identity.

    Args:
        identity: The identity the token speaks for
        settings: Token secret/algorithm/lifetime; defaults to get_settings()
        expires_delta: Custom expiration time

    Returns:
        JWT token string
    """
    settings = settings or get_settings()
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.token_expire_hours)

    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": identity.id,
        "email": identity.email,
        "name": identity.display_name,
        "role": identity.role.value,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "type": TOKEN_TYPE_ACCESS,
    }
    return jwt.encode(payload, settings.token_secret, algorithm=settings.token_algorithm)


# =============================================================================
# TOKEN DECODING
# =============================================================================

def decode_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        jwt.InvalidTokenError: If token is invalid or expired
    """
    settings = settings or get_settings()
    return jwt.decode(token, settings.token_secret, algorithms=[settings.token_algorithm])


def validate_access_token(token: str, settings: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    """
    Validate an access token.

    Returns payload if valid, None if invalid.
    """
    try:
        payload = decode_token(token, settings)
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token", extra={"reason": str(e)})
        return None
    if payload.get("type") != TOKEN_TYPE_ACCESS:
        return None
    return payload


# =============================================================================
# IDENTITY PROVIDER
# =============================================================================

class TokenIdentityProvider:
    """
    Identity provider backed by one bearer token.

    With a store, the identity is loaded by the token subject and an
    unknown subject yields no identity. Without one, the identity is
    rebuilt from the signed claims.
    """

    def __init__(
        self,
        token: Optional[str],
        store: Optional[PersistenceStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.token = token
        self.store = store
        self.settings = settings

    def current_identity(self) -> Optional[Identity]:
        if not self.token:
            return None

        payload = validate_access_token(self.token, self.settings)
        if payload is None:
            return None

        subject = payload.get("sub")
        if not subject:
            return None

        if self.store is not None:
            try:
                return self.store.get(EntityType.IDENTITY, subject)
            except NotFound:
                logger.info("Token subject has no identity", extra={"identity_id": subject})
                return None

        try:
            return Identity(
                id=subject,
                email=payload.get("email", ""),
                role=payload.get("role"),
                display_name=payload.get("name") or "",
            )
        except ValueError:
            logger.info("Token claims do not describe a valid identity", extra={"identity_id": subject})
            return None
