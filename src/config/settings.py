"""Application settings using Pydantic Settings.

Centralized configuration for the staffing platform core.

SECURITY: Production requires MAVEN_TOKEN_SECRET (min 32 chars).
Generate with: python -c "import secrets; print(secrets.token_hex(32))"
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_POLICY_FILE = Path(__file__).parent / "access_policy.yaml"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MAVEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Maven Staffing", description="Application name")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    # Access policy (role -> permissions, transition -> roles)
    policy_file: Optional[Path] = Field(
        default=DEFAULT_POLICY_FILE,
        description="YAML access policy; unset to use built-in defaults only",
    )

    # Persistence
    database_url: str = Field(
        default="sqlite:///./data/maven.db",
        description="SQLAlchemy URL for the SQL store",
    )
    echo_sql: bool = Field(default=False, description="Log SQL statements")

    # Bearer tokens issued/verified by the token identity provider
    token_secret: str = Field(
        default="change-me-in-production-INSECURE-dev-secret",
        description="HMAC secret for bearer tokens - MUST be set in production",
    )
    token_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    token_expire_hours: int = Field(default=8, ge=1, description="Access token lifetime")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")

    def validate_production_security(self) -> List[str]:
        """
        Validate security requirements for production.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.is_production:
            return errors

        if "INSECURE" in self.token_secret or len(self.token_secret) < 32:
            errors.append("MAVEN_TOKEN_SECRET must be set to a random value of at least 32 characters")

        if self.debug:
            errors.append("MAVEN_DEBUG must be false in production")

        return errors


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    settings = Settings()
    for error in settings.validate_production_security():
        logger.error(f"[SECURITY] {error}")
    return settings
