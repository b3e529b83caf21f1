"""
db.engine - Engine lifecycle and session factory for BakeDesk.

init_db() may be called again with a different URL (the test suite does
this per test); the previous engine is disposed first.  Any SQLAlchemy
URL works; SQLite gets foreign-key enforcement and explicit BEGIN
handling so nested transactions (SAVEPOINTs) work per import row.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):
        # pysqlite's implicit transactions would swallow SAVEPOINTs
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_db(db_url: str) -> Engine:
    """(Re)create the engine for ``db_url``, create missing tables and return it."""
    global _engine, _session_factory

    dispose_db()
    engine = create_engine(db_url)
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)

    Base.metadata.create_all(engine)
    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    logger.debug(f"Engine ready: {engine.url!r}")
    return engine


def dispose_db() -> None:
    """Close pooled connections and forget the current engine."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def get_session() -> Session:
    """New session on the current engine.  Callers close it themselves."""
    if _session_factory is None:
        raise RuntimeError("Database not initialised - call init_db() first")
    return _session_factory()
