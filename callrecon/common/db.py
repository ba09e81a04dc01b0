"""
Database Connection Management

This module provides database connection setup and session management
for the CallRecon system using SQLAlchemy. The database is only used by
the storage collaborators (call fetch, agent directory); the matching
engine itself works on in-memory records.

The module implements a singleton pattern for the database engine
and provides session factory functions.

Author: CallRecon Team
Date: 2026-10-18
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from callrecon.common.config import settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.
    """
    pass


# Global database connection objects
_engine = None
_SessionLocal = None


def init_engine():
    """
    Initialize the database engine and session factory.

    Returns:
        sqlalchemy.Engine: The database engine instance

    Raises:
        RuntimeError: If DATABASE_URL is not configured
    """
    global _engine, _SessionLocal

    if _engine is None:
        if not settings.database_url:
            raise RuntimeError(
                "DATABASE_URL not configured. Please set the database_url "
                "in your .env file or environment variables."
            )

        engine_options = {'pool_pre_ping': True, 'echo': False}
        if not settings.database_url.startswith('sqlite'):
            engine_options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
            )
        _engine = create_engine(settings.database_url, **engine_options)

        _SessionLocal = sessionmaker(
            bind=_engine,
            expire_on_commit=False
        )

    return _engine


def get_session():
    """
    Get a new database session.

    The session should be closed after use or used in a context manager:

        with get_session() as session:
            calls = fetch_calls_by_filter(session, call_type='inbound')
    """
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal()


def reset_engine() -> None:
    """Dispose the singleton engine so the next call re-reads settings."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
