"""
Database Connection Module

Builds the synchronous SQLAlchemy engine and session factory from settings
and hands out the SQL-backed persistence store.

Usage:
    store = get_sql_store()                 # engine from MAVEN_DATABASE_URL
    store = create_sql_store("sqlite://")   # private in-memory database (tests)
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import Settings, get_settings

from .models import Base
from .sql_store import SqlAlchemyStore

logger = logging.getLogger(__name__)

# Global engine and store (lazy initialization)
_engine: Optional[Engine] = None
_store: Optional[SqlAlchemyStore] = None


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for database_url.

    SQLite in-memory databases share one connection across threads so every
    session sees the same data. File databases get their directory created.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        database = url.database
        if not database or database == ":memory:":
            return create_engine(
                database_url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        Path(database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)


def create_sql_store(database_url: str, echo: bool = False) -> SqlAlchemyStore:
    """Engine, schema and store for one database URL."""
    engine = build_engine(database_url, echo=echo)
    init_db(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    return SqlAlchemyStore(factory)


def get_sql_store(settings: Optional[Settings] = None) -> SqlAlchemyStore:
    """
    Get or create the process-wide SQL store.

    Args:
        settings: Application settings. If None, loads from environment.
    """
    global _engine, _store

    if _store is None:
        settings = settings or get_settings()
        logger.info(
            "Creating database engine",
            extra={"backend": make_url(settings.database_url).get_backend_name()},
        )
        _engine = build_engine(settings.database_url, echo=settings.echo_sql)
        init_db(_engine)
        _store = SqlAlchemyStore(sessionmaker(bind=_engine, expire_on_commit=False, autoflush=False))

    return _store


def close_database() -> None:
    """Dispose the process-wide engine."""
    global _engine, _store

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _store = None
