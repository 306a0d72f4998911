"""Database connection and session management.

This module provides engine creation, session factories and helpers used by
the API and the test suite.
"""

from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from quartermaster.config import Settings, get_settings
from quartermaster.models import ARCHIVE_TABLES, Base


def _configure_sqlite(
    dbapi_connection: Any, connection_record: Any  # noqa: ARG001
) -> None:
    """Enable WAL mode and foreign key enforcement on SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Settings | None = None) -> Engine:
    """Create and configure the database engine.

    Args:
        settings: Settings to read the URL and pool options from; defaults to
            the cached application settings

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    settings = settings or get_settings()

    if settings.DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            pool_pre_ping=True,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.DATABASE_POOL_TIMEOUT,
            },
        )
        event.listen(engine, "connect", _configure_sqlite)
    else:
        engine = create_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            pool_pre_ping=True,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        )

    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def init_db(engine: Engine, *, with_archive: bool = True) -> None:
    """Create all tables.

    Args:
        engine: Engine to create tables on
        with_archive: Whether to create the order archive tables. Deployments
            without them fall back to completing orders in place.
    """
    tables = [
        table
        for table in Base.metadata.sorted_tables
        if with_archive or table not in ARCHIVE_TABLES
    ]
    Base.metadata.create_all(bind=engine, tables=tables)


def check_database_health(engine: Engine) -> bool:
    """Return True when a trivial query succeeds."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
