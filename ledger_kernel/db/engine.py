"""
Module: ledger_kernel.db.engine
Responsibility: Owns the process-wide engine and session factory for the
    ledger database, plus the commit-or-rollback unit of work that services
    run inside.
Architecture position: Kernel > DB.  Imports models only to register them on
    Base.metadata for create_tables/drop_tables.

Dialects:
    - PostgreSQL: pooled connections at READ COMMITTED.  Posting and period
      locking take explicit row locks (SELECT ... FOR UPDATE) on the entry,
      the period and the tenant's sequence row.
    - SQLite: foreign keys on, and transactions opened with an explicit BEGIN
      so nested savepoints behave.  An in-memory URL shares one connection.

Failure modes:
    - RuntimeError from any accessor used before init_engine_from_url().
    - sqlalchemy.exc.TimeoutError when every pooled connection is checked out
      for longer than pool_timeout.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_READY = "Ledger database not configured; call init_engine_from_url() first."


def _sqlite_options(url: URL) -> dict[str, Any]:
    if url.database in (None, "", ":memory:"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {}


def _enable_sqlite_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _begin(connection):
        connection.exec_driver_sql("BEGIN")


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Build the ledger engine for ``database_url`` and make it current.

    Pool arguments apply to server databases only; SQLite ignores them.
    Calling again replaces the current engine without disposing it.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    backend = url.get_backend_name()

    if backend == "sqlite":
        engine = create_engine(url, echo=echo, **_sqlite_options(url))
        _enable_sqlite_transactions(engine)
    else:
        engine = create_engine(
            url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    _engine = engine
    _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": backend,
            "database": url.database,
            "pooled": backend != "sqlite",
        },
    )
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_READY)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that open one session per worker thread."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_READY)
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Run a block of ledger work as one database transaction.

    Commits when the block finishes, rolls back and re-raises when it
    raises, and always closes the session::

        with session_scope() as session:
            JournalEntryService(session).post(tenant_id, entry_id, actor_id)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("ledger_transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _metadata():
    import ledger_kernel.models  # noqa: F401  (registers every table)
    from ledger_kernel.db.base import Base

    return Base.metadata


def create_tables() -> None:
    """Create every ledger table that does not exist yet."""
    metadata = _metadata()
    metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(metadata.tables)})


def drop_tables() -> None:
    """Drop every ledger table.  Test setup and teardown only."""
    _metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the current engine and forget the session factory."""
    global _engine, _SessionFactory

    engine, _engine, _SessionFactory = _engine, None, None
    if engine is not None:
        engine.dispose()


@atexit.register
def _release_pool() -> None:
    if _engine is not None:
        _engine.dispose()
