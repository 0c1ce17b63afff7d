"""
Engine and session management for the journal store.

The reporting engine only ever reads from the store.  Writes happen in
tests (fixture data) and in whatever system owns the ledger, which is
why ``session_scope`` still commits.

Usage::

    init_engine_from_url("postgresql://reports@db/school")
    with session_scope() as session:
        service = ReportingService.from_session(session)
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Create the process-wide engine and session factory.

    In-memory SQLite shares one connection (``StaticPool``) so that every
    session, including ones opened on report worker threads, sees the
    same tables.
    """
    global _engine, _SessionFactory

    if database_url in _IN_MEMORY_URLS:
        options: dict = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    else:
        options = {"pool_pre_ping": True}

    _engine = create_engine(database_url, echo=echo, **options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
    )
    return _engine


def _not_initialized() -> RuntimeError:
    return RuntimeError("Journal store not initialized; call init_engine_from_url() first.")


def get_engine() -> Engine:
    if _engine is None:
        raise _not_initialized()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise _not_initialized()
    return _SessionFactory


def get_session() -> Session:
    """Open a new session. Caller closes it."""
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Session that commits on clean exit and rolls back on error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _store_metadata() -> MetaData:
    # Importing the models registers the account and journal tables.
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401

    return Base.metadata


def create_tables() -> None:
    """Create the account and journal tables (fixtures and local stores)."""
    metadata = _store_metadata()
    metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(metadata.tables)})


def drop_tables() -> None:
    _store_metadata().drop_all(get_engine())
    logger.info("tables_dropped")


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
