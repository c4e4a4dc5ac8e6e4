"""Database connection and session management."""

import os
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def enable_sqlite_savepoints(sqlite_engine: Engine) -> Engine:
    """Let pysqlite run SAVEPOINTs inside real transactions.

    pysqlite defers BEGIN on its own, which breaks Session.begin_nested();
    disable that and emit BEGIN when SQLAlchemy starts a transaction.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return sqlite_engine


# Get database URL from environment or use SQLite default
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./rolling_rent.db")


def create_db_engine(database_url: str) -> Engine:
    """Create an engine, with savepoint support when the database is SQLite."""
    if database_url.startswith("sqlite"):
        # SQLite uses StaticPool for simplicity in dev/test
        return enable_sqlite_savepoints(
            create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        )
    return create_engine(database_url, pool_pre_ping=True)


engine = create_db_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def configure_engine(database_url: str) -> Engine:
    """Point engine and SessionLocal at database_url.

    The engine above is built at import time, before load_config() has read
    .env; entry points call this with the loaded URL. SessionLocal is rebound
    in place, so modules that imported it see the new engine.
    """
    global engine
    if engine.url.render_as_string(hide_password=False) == database_url:
        return engine

    engine.dispose()
    engine = create_db_engine(database_url)
    SessionLocal.configure(bind=engine)
    return engine


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = [
    "engine",
    "configure_engine",
    "create_db_engine",
    "enable_sqlite_savepoints",
    "SessionLocal",
    "get_db",
]
