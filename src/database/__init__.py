"""
Persistence layer for the Maven staffing platform.

This module provides:
- InMemoryStore: lock-protected dict store for tests and scripts
- SqlAlchemyStore: relational store with atomic conditional updates
- SQLAlchemy ORM models and engine/session setup
"""

from .memory_store import InMemoryStore
from .models import (
    Base,
    IdentityRecord,
    AgencyRecord,
    HiringRequestRecord,
    ApplicationRecord,
    RECORD_MODELS,
)
from .sql_store import SqlAlchemyStore
from .connection import build_engine, init_db, create_sql_store, get_sql_store, close_database

__all__ = [
    # Stores
    "InMemoryStore",
    "SqlAlchemyStore",
    # Models
    "Base",
    "IdentityRecord",
    "AgencyRecord",
    "HiringRequestRecord",
    "ApplicationRecord",
    "RECORD_MODELS",
    # Connection
    "build_engine",
    "init_db",
    "create_sql_store",
    "get_sql_store",
    "close_database",
]
