"""Configuration module for the Maven staffing core."""

from .settings import Settings, get_settings
from .policy import AccessPolicy, PolicyError, build_policy, get_access_policy, load_policy
from .logging_setup import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "AccessPolicy",
    "PolicyError",
    "build_policy",
    "get_access_policy",
    "load_policy",
    "configure_logging",
]
