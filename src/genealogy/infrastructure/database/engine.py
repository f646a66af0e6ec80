"""Database engine setup.

Any SQLAlchemy URL works; the recursive closure queries need a backend
with ``WITH RECURSIVE`` support (SQLite 3.8.3+, PostgreSQL). File-backed
SQLite gets WAL mode so readers don't block the single writer. In-memory
SQLite shares one connection across the pool, otherwise every checkout
would see an empty database. That shared connection also means one
transaction at a time: ``sqlite://`` is for single-threaded use (tests,
scratch sessions), and concurrent callers need a file or server URL.

SQLAlchemy Core (not ORM) is used: edges are plain tuples and nodes have
no identity beyond their column values.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Table, create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool


def is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name == "sqlite"


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for *url*.

    ``sqlite://`` (in memory) is single-threaded only; see the module notes.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(parsed, echo=echo)

    if parsed.database in (None, "", ":memory:"):
        return create_engine(
            parsed,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    engine = create_engine(parsed, echo=echo)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(engine: Engine, table: Table) -> None:
    """Create *table* and its indexes if missing. Idempotent."""
    table.metadata.create_all(engine, tables=[table])
