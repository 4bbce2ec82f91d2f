"""SQLite engines and sessions for explore reads and index maintenance."""

from contextlib import contextmanager
from typing import Dict, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..utils.logging import get_logger
from .schema import create_all

logger = get_logger(__name__)

_ENGINES: Dict[str, Engine] = {}


def _begin_snapshot_transactions(engine: Engine) -> None:
    """
    Make every session transaction a real SQLite transaction.

    pysqlite defers BEGIN until the first write, so without this each SELECT
    of a request would see whatever was committed last. WAL mode lets a
    writer commit while a reader keeps its snapshot.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN")


def get_engine(sqlite_path: str) -> Engine:
    """
    Engine for a database file, built and schema-initialized on first use.

    Later calls for the same path return the same engine.
    """
    engine = _ENGINES.get(sqlite_path)
    if engine is None:
        engine = create_engine(f"sqlite:///{sqlite_path}", future=True)
        _begin_snapshot_transactions(engine)
        create_all(engine)
        _ENGINES[sqlite_path] = engine
        logger.debug("Opened SQLite engine for %s", sqlite_path)
    return engine


def get_session(sqlite_path: str) -> Session:
    """Get a SQLAlchemy session (caller must close it)."""
    return sessionmaker(bind=get_engine(sqlite_path), autoflush=False)()


@contextmanager
def session_context(sqlite_path: str) -> Generator[Session, None, None]:
    """
    Context manager for SQLAlchemy sessions.

    Rolls back on error and always closes the session. Explore requests are
    read-only and never commit; every query in the block reads the snapshot
    taken by the first one. Maintenance commands commit explicitly.

    Usage:
        with session_context(sqlite_path) as session:
            response = explore(session, "events", query, viewer)
    """
    session = get_session(sqlite_path)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
