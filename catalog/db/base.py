"""SQLAlchemy engine management.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. Table metadata lives in ``catalog.db.tables``; schema
creation is owned by the SQL migrations runner. This module only manages the
engine lifecycle and per-connection setup.
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from catalog.db.sqlite_text_search import register_text_search_functions

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return (
        os.getenv("TEST_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or "sqlite+pysqlite:///:memory:"
    )


# Module-level cached Engine so repositories share one pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def _on_sqlite_connect(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()
    register_text_search_functions(dbapi_connection)


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    Without a URL the cached engine is returned as-is. A different URL
    replaces (and disposes) the cached engine. For SQLite in-memory URLs a
    StaticPool keeps a single connection alive across threads; every SQLite
    connection gets foreign keys enabled and the text-search functions
    registered.
    """
    global _ENGINE, _ENGINE_URL
    if url is None and _ENGINE is not None:
        return _ENGINE
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        is_sqlite = resolved_url.startswith("sqlite")
        if is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        if _ENGINE is not None:
            _ENGINE.dispose()
        engine = create_engine(resolved_url, **kwargs)
        if is_sqlite:
            event.listen(engine, "connect", _on_sqlite_connect)
        _ENGINE = engine
        _ENGINE_URL = resolved_url
        logger.info("db.engine.created dialect=%s", engine.dialect.name)

    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


__all__ = ["get_engine", "dispose_engine"]
