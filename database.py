"""
Database Configuration and Session Management
============================================

This module provides the entity store engine, session factory, and table
creation functionality for the event indexer.
"""

import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from config import Config
from models import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False):
    """Create an engine for the given URL with settings suited to its backend"""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases only live as long as their single connection
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,    # Validate connections before use
        pool_recycle=3600,     # Recycle connections every hour
        echo=echo,
    )


def build_session_factory(database_url: str, echo: bool = False, create_schema: bool = True):
    """Build a standalone session factory (used by tests and the replay tool)"""
    factory_engine = build_engine(database_url, echo=echo)
    if create_schema:
        create_tables(factory_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=factory_engine)


engine = build_engine(Config.DATABASE_URL, echo=Config.SQL_ECHO)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@contextmanager
def managed_session(session_factory=None):
    """Sync context manager for database sessions"""
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        session.close()


def create_tables(bind=None) -> bool:
    """Create all entity tables if they don't exist"""
    target = bind or engine
    logger.info("🏗️ Creating entity tables (if they don't exist)...")
    logger.info(f"📊 Found {len(Base.metadata.tables)} table models to create")

    Base.metadata.create_all(bind=target, checkfirst=True)

    existing_tables = inspect(target).get_table_names()
    logger.info(f"✅ Entity schema verified: {len(existing_tables)} tables available")
    return True
