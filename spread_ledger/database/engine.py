"""
Database connection for SpreadLedger.

One engine per process, created by init_engine() from an explicit URL,
$DATABASE_URL, or the local spread_ledger.db file.  Position tables are
created on first connect.  get_session() wraps one unit of work: an import
either lands completely or not at all.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from spread_ledger.database.models import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///spread_ledger.db"

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def resolve_database_url(db_url: Optional[str] = None) -> str:
    """Explicit URL, then $DATABASE_URL, then the local SQLite file."""
    return db_url or os.environ.get("DATABASE_URL") or DEFAULT_DATABASE_URL


def _enable_foreign_keys(dbapi_conn, connection_record):
    # position_legs rows rely on ON DELETE CASCADE
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(db_url: str) -> Engine:
    url = make_url(db_url)

    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    # FastAPI serves requests from a thread pool
    engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def init_engine(db_url: Optional[str] = None) -> Engine:
    """Connect to the position database, replacing any earlier connection."""
    global _engine, _SessionFactory

    dispose_engine()
    db_url = resolve_database_url(db_url)

    _engine = _create_engine(db_url)
    _SessionFactory = sessionmaker(bind=_engine)
    Base.metadata.create_all(_engine)

    logger.info("Position database ready: %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def dispose_engine() -> None:
    """Close pooled connections; get_session() fails until init_engine() runs again."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


def get_dialect() -> str:
    if _engine is None:
        raise RuntimeError("Position database not initialized, call init_engine() first")
    return _engine.dialect.name


@contextmanager
def get_session() -> Iterator[Session]:
    """Session for one unit of work: commit on success, roll back on error."""
    if _SessionFactory is None:
        raise RuntimeError("Position database not initialized, call init_engine() first")

    session: Session = _SessionFactory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
