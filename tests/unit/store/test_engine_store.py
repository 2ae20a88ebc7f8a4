"""Tests for the SQLAlchemy engine store, run against SQLite."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine

from tablemap.core.context import Context
from tablemap.core.exceptions import CancelledError, StoreError
from tablemap.store import EngineStore, Store


@pytest.fixture
def engine_store(tmp_path: Path) -> EngineStore:
    store = EngineStore(f"sqlite:///{tmp_path / 'engine.db'}")
    store.connect()
    store.execute("CREATE TABLE t (id INTEGER PRIMARY KEY AUTOINCREMENT, v TEXT)")
    yield store
    store.close()


class TestEngineStore:
    """Tests for EngineStore."""

    def test_satisfies_protocol(self, engine_store: EngineStore):
        assert isinstance(engine_store, Store)

    def test_execute_and_query(self, engine_store: EngineStore):
        result = engine_store.execute("INSERT INTO t (v) VALUES (?)", ("a",))

        assert result.rowcount == 1
        assert result.lastrowid == 1

        rows = engine_store.query("SELECT id, v FROM t")
        assert rows.columns == ["id", "v"]
        assert rows.rows == [(1, "a")]

    def test_transaction_commit_and_rollback(self, engine_store: EngineStore):
        tx = engine_store.begin()
        tx.execute("INSERT INTO t (v) VALUES (?)", ("kept",))
        tx.commit()

        tx = engine_store.begin()
        tx.execute("INSERT INTO t (v) VALUES (?)", ("dropped",))
        tx.rollback()

        assert engine_store.query("SELECT v FROM t").rows == [("kept",)]

    def test_errors_wrapped(self, engine_store: EngineStore):
        with pytest.raises(StoreError) as exc_info:
            engine_store.query("SELECT * FROM missing_table")

        assert exc_info.value.statement == "SELECT * FROM missing_table"

    def test_cancelled_context(self, engine_store: EngineStore):
        ctx, cancel = Context.background().with_cancel()
        cancel()

        with pytest.raises(CancelledError):
            engine_store.query("SELECT 1", ctx=ctx)

    def test_wraps_existing_engine(self, tmp_path: Path):
        engine = create_engine(f"sqlite:///{tmp_path / 'other.db'}")
        store = EngineStore(engine)

        store.ping()
        assert store.engine is engine
        store.close()

    def test_markers_follow_driver_paramstyle(self, tmp_path: Path):
        """Dialect markers are rewritten for a driver using named parameters."""
        store = EngineStore(f"sqlite:///{tmp_path / 'named.db'}", paramstyle="named")
        store.connect()
        store.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)")

        store.execute("INSERT INTO t (v) VALUES (?)", ("a",))
        store.execute("INSERT INTO t (v) VALUES ($1)", ("b",))
        rows = store.query("SELECT v FROM t WHERE v = ? OR v = ? ORDER BY v", ("a", "b"))

        assert store.engine.dialect.paramstyle == "named"
        assert rows.rows == [("a",), ("b",)]
        store.close()

    def test_not_connected(self):
        with pytest.raises(StoreError, match="not connected"):
            EngineStore("sqlite://").query("SELECT 1")
