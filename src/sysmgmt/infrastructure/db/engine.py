"""Database engine factory.

All SQLAlchemy Engines used by SYSMGMT come from `make_engine` so that every
connection is configured the same way:

- **SQLite**: connection PRAGMAs enforce foreign keys and enable WAL. An
  in-memory database is pinned to a single shared connection, otherwise every
  pooled connection (and every worker thread) would see its own empty DB.
- **Other backends**: no tuning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import Engine

SQLITE_BACKEND = "sqlite"
_MEMORY_DATABASES = {None, "", ":memory:"}


def is_sqlite(url: str | URL) -> bool:
    """Return True if the given SQLAlchemy URL or string corresponds to SQLite."""
    return make_url(str(url)).get_backend_name() == SQLITE_BACKEND


def is_sqlite_memory(url: str | URL) -> bool:
    """Return True for an in-memory SQLite URL (``sqlite://`` or ``:memory:``)."""
    u = make_url(str(url))
    return u.get_backend_name() == SQLITE_BACKEND and u.database in _MEMORY_DATABASES


def make_engine(url: str | URL, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy Engine for the given URL.

    Args:
        url: Database connection URL (str or :class:`URL`).
        echo: If True, log SQL statements.

    Returns:
        Engine: Configured SQLAlchemy Engine.
    """
    kwargs: dict[str, Any] = {}
    if is_sqlite(url):
        # pooled connections are handed to worker threads
        kwargs["connect_args"] = {"check_same_thread": False}
    if is_sqlite_memory(url):
        kwargs["poolclass"] = StaticPool

    engine = create_engine(url, echo=echo, **kwargs)

    if is_sqlite(url):

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn: SQLiteConnection, conn_record):  # type: ignore #pylint: disable=W0613
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.close()

    return engine
