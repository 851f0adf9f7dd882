"""
Bearer token tests.
"""

from datetime import timedelta

import jwt
import pytest

from config.settings import Settings
from rbac.context import SessionContext
from rbac.jwt import TokenIdentityProvider, create_access_token, decode_token, validate_access_token
from rbac.roles import Role


@pytest.fixture
def settings():
    return Settings(_env_file=None, token_secret="unit-test-secret-" + "y" * 32)


class TestAccessTokens:
    """Token creation and validation."""

    def test_claims(self, talent, settings):
        payload = decode_token(create_access_token(talent, settings), settings)

        assert payload["sub"] == talent.id
        assert payload["role"] == "talent"
        assert payload["type"] == "access"

    def test_wrong_secret(self, talent, settings):
        token = create_access_token(talent, settings)
        other = Settings(_env_file=None, token_secret="another-secret-" + "z" * 32)
        assert validate_access_token(token, other) is None

    def test_expired(self, talent, settings):
        token = create_access_token(talent, settings, expires_delta=timedelta(seconds=-1))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token, settings)
        assert validate_access_token(token, settings) is None

    def test_non_access_token(self, settings):
        token = jwt.encode({"sub": "x", "type": "refresh"}, settings.token_secret, algorithm="HS256")
        assert validate_access_token(token, settings) is None


class TestTokenIdentityProvider:
    """Identity resolution from a bearer token."""

    def test_no_token(self, settings):
        assert TokenIdentityProvider(None, settings=settings).current_identity() is None

    def test_identity_loaded_from_store(self, store, agency_account, settings):
        identity, _ = agency_account
        provider = TokenIdentityProvider(create_access_token(identity, settings), store=store, settings=settings)

        assert provider.current_identity() == identity

    def test_role_comes_from_store_not_token(self, store, talent, settings):
        forged = talent.model_copy(update={"role": Role.ADMIN})
        token = create_access_token(forged, settings)

        session = SessionContext(TokenIdentityProvider(token, store=store, settings=settings)).refresh()

        assert session.role == Role.TALENT

    def test_claims_without_store(self, talent, settings):
        identity = TokenIdentityProvider(create_access_token(talent, settings), settings=settings).current_identity()

        assert identity.id == talent.id
        assert identity.role == Role.TALENT
        assert identity.display_name == talent.display_name

    def test_bad_role_claim_without_store(self, settings):
        token = jwt.encode(
            {"sub": "x", "role": "overlord", "type": "access"}, settings.token_secret, algorithm="HS256"
        )
        assert TokenIdentityProvider(token, settings=settings).current_identity() is None
