from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from evalcore.config.settings import settings


def _validate_postgresql_driver() -> None:
    """Validate PostgreSQL driver is installed when using PostgreSQL.

    Must actually import psycopg2 (not just find_spec) because SQLAlchemy
    will try to import it when creating the engine.
    """
    try:
        import psycopg2  # noqa: F401

        logger.info("PostgreSQL driver (psycopg2) is available")
    except ImportError as e:
        logger.error("⚠️ CRITICAL: PostgreSQL driver (psycopg2) is not installed! Install the 'postgres' extra.")
        raise ImportError("PostgreSQL driver required. Install with: pip install psycopg2-binary") from e


def check_database_connection() -> None:
    """Run a trivial query against the configured database."""
    try:
        with _get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection test successful")
    except Exception as e:
        logger.error(f"❌ Database connection test failed: {e}")
        raise


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN on pysqlite so SAVEPOINT rollbacks are honoured.

    pysqlite defers BEGIN until the first DML statement, which breaks nested
    transactions. Disabling its own transaction handling and emitting BEGIN
    from the engine "begin" event is the SQLAlchemy-documented recipe.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Lazy initialization to avoid import-time database connections
_engine = None
_SessionLocal = None


def _get_engine():
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        logger.info(f"Initializing database engine: {settings.database_url}")

        url = settings.database_url.lower()
        is_postgresql = "postgresql" in url or "postgres" in url
        connect_args: dict[str, Any] = {}
        if is_postgresql:
            _validate_postgresql_driver()
            connect_args = {
                "connect_timeout": 10,
                "application_name": "evalcore",
            }
        elif "sqlite" in url:
            logger.warning("Using SQLite database (local development only)")
            connect_args = {"check_same_thread": False}

        _engine = create_engine(
            settings.database_url,
            connect_args=connect_args,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        if "sqlite" in url:
            enable_sqlite_savepoints(_engine)
        logger.info("Database engine initialized")
    return _engine


def get_engine():
    """Get or create the database engine (public API)."""
    return _get_engine()


def _get_session_local():
    """Get or create the session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
        logger.info("Database session factory initialized")
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Get database session for FastAPI dependencies.

    This is a plain generator function (NOT a context manager) that FastAPI
    can use directly with Depends(). Services commit their own units of work
    through atomic(), so this only guarantees the session is closed.

    Yields:
        Session: SQLAlchemy database session
    """
    logger.debug("Creating new database session (FastAPI dependency)")
    session = _get_session_local()()
    try:
        yield session
    finally:
        session.close()
        logger.debug("Database session closed")


@contextmanager
def atomic(session: Session) -> Generator[Session, None, None]:
    """Run a block of reads and writes as one all-or-nothing unit.

    When the session already has a transaction open (e.g. autobegun by a
    previous query) the block runs inside a SAVEPOINT and the enclosing
    transaction is committed once the savepoint is released. Otherwise a new
    transaction is started. Any exception rolls the block back, leaving the
    prior committed state untouched, and propagates.
    """
    if session.in_transaction():
        with session.begin_nested():
            yield session
        session.commit()
    else:
        with session.begin():
            yield session


def transactionally(session: Session, ops: Sequence[Callable[[Session], Any]]) -> list[Any]:
    """Execute a list of operations atomically against the session.

    Args:
        session: Database session
        ops: Callables receiving the session; executed in order

    Returns:
        The return value of each operation, in order
    """
    results: list[Any] = []
    with atomic(session):
        for op in ops:
            results.append(op(session))
        session.flush()
    logger.debug(f"Transaction committed with {len(ops)} operations")
    return results
