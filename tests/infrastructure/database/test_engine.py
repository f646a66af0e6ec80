"""Tests for database engine setup and initialization."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from genealogy.infrastructure.database.engine import create_db_engine, init_database, is_sqlite
from genealogy.infrastructure.database.schema import edge_table
from genealogy.infrastructure.store import EdgeStore
from tests.conftest import n


class TestCreateDbEngine:
    def test_file_sqlite_uses_wal(self, tmp_path: Path) -> None:
        engine = create_db_engine(f"sqlite:///{tmp_path / 'g.db'}")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
        engine.dispose()

    def test_memory_sqlite_shares_one_database(self) -> None:
        engine = create_db_engine("sqlite://")
        store = EdgeStore(engine)
        store.insert_edge(n("a:A"), n("b:B"))
        # A fresh checkout must see the row written by the previous one
        with engine.connect() as conn:
            assert conn.execute(text("SELECT count(*) FROM edge")).scalar() == 1
        store.close()

    def test_memory_sqlite_is_one_connection(self) -> None:
        # every checkout is the same DBAPI connection, so one caller at a time
        engine = create_db_engine("sqlite://")
        assert isinstance(engine.pool, StaticPool)
        with engine.connect() as first:
            driver = first.connection.driver_connection
        with engine.connect() as second:
            assert second.connection.driver_connection is driver
        engine.dispose()

    def test_is_sqlite(self, tmp_path: Path) -> None:
        engine = create_db_engine(f"sqlite:///{tmp_path / 'g.db'}")
        assert is_sqlite(engine)
        engine.dispose()


class TestInitDatabase:
    def test_creates_table(self, db_engine: Engine) -> None:
        init_database(db_engine, edge_table("edge"))
        assert "edge" in inspect(db_engine).get_table_names()

    def test_idempotent(self, db_engine: Engine) -> None:
        table = edge_table("edge")
        init_database(db_engine, table)
        init_database(db_engine, table)
        assert inspect(db_engine).get_table_names() == ["edge"]
