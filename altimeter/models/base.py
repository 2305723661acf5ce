"""
SQLAlchemy base configuration and session management.

Uses SQLAlchemy 2.0 style with type hints and declarative base. The
module-level engine follows the configured URL; tests and tools build
their own with make_engine().
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from altimeter.config import config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def _is_sqlite(url: str) -> bool:
    return url.startswith('sqlite')


def _is_memory_sqlite(url: str) -> bool:
    return url in ('sqlite://', 'sqlite:///:memory:')


def make_engine(url: str, busy_timeout_seconds: Optional[float] = None, echo: bool = False) -> Engine:
    """
    Create an engine configured for the track workload.

    SQLite gets WAL mode so list/detail reads proceed while the recorder
    is appending points, and a short busy timeout so a reader never waits
    long on the writer.
    """
    timeout = busy_timeout_seconds if busy_timeout_seconds is not None else config.database.busy_timeout_seconds
    engine_kwargs = {'echo': echo}

    if _is_sqlite(url):
        engine_kwargs['connect_args'] = {'check_same_thread': False, 'timeout': timeout}
        if _is_memory_sqlite(url):
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs['poolclass'] = StaticPool

    new_engine = create_engine(url, **engine_kwargs)

    if _is_sqlite(url):
        @event.listens_for(new_engine, 'connect')
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Configure SQLite for one writer and concurrent readers."""
            cursor = dbapi_connection.cursor()
            # Write-Ahead Logging for concurrent access
            cursor.execute('PRAGMA journal_mode=WAL')
            # Synchronous=NORMAL balances safety and speed
            cursor.execute('PRAGMA synchronous=NORMAL')
            # Enable foreign keys
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    return new_engine


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,  # Returned rows are used after the session closes
    )


engine = make_engine(config.database.url, echo=config.debug)

# Session factory
SessionLocal = make_session_factory(engine)


@contextmanager
def get_session(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_session() as session:
            session.execute(...)

    Automatically handles commit/rollback and session cleanup.
    """
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist.
    """
    Base.metadata.create_all(bind=bind or engine)
