"""
Database - Engine and Session Setup

Builds SQLAlchemy engines and session factories, and creates or drops the
schema. The host application owns the returned objects; nothing is cached
at module level.
"""

from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from newwords.config import get_database_url
from newwords.sm2.models import Base

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("decks", "words", "practice_log")


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_sqlite_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:", "sqlite+pysqlite://", "sqlite+pysqlite:///:memory:")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_url(url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    Server databases use connection pooling. SQLite gets foreign key
    enforcement (needed for deck -> word cascades), and in-memory SQLite
    shares one connection so every session sees the same data.

    Args:
        url: Connection string (defaults to DATABASE_URL from the environment)
        echo: Log emitted SQL

    Returns:
        SQLAlchemy Engine instance
    """
    db_url = url or get_database_url()

    if _is_sqlite(db_url):
        if _is_sqlite_memory(db_url):
            engine = create_engine(
                db_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=echo,
            )
        else:
            engine = create_engine(db_url, echo=echo)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        db_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=echo
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory bound to the engine.

    Objects stay readable after commit so the store can convert them to
    read models once the transaction is closed.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates missing tables.
    """
    existing_tables = set(inspect(engine).get_table_names())
    missing = [name for name in REQUIRED_TABLES if name not in existing_tables]
    if not missing:
        return

    Base.metadata.create_all(engine)
    logger.info("Created tables: %s", ", ".join(missing))


def reset_db(engine: Engine) -> None:
    """
    DANGEROUS: Delete all data and recreate tables.

    Only use this for testing or when you want to start fresh.
    All practice history will be lost!
    """
    Base.metadata.drop_all(engine)
    logger.warning("All tables dropped")

    init_db(engine)
