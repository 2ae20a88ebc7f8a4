"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from tablemap.dialects import SQLiteDialect
from tablemap.repository import Repository
from tablemap.schema import EntityRegistry
from tablemap.store import SQLiteStore
from tests.fakes import Account, AuditEntry, Hooked, Post, RecordingStore, Tag, User

ENTITIES = (User, Post, Account, Tag, AuditEntry, Hooked)


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for tests."""
    return tmp_path / "test.db"


@pytest.fixture
def registry() -> EntityRegistry:
    """Provide a fresh registry with the sample entities registered."""
    reg = EntityRegistry()
    for entity in ENTITIES:
        reg.register_entity(entity)
    return reg


@pytest.fixture
def store(test_db_path: Path) -> SQLiteStore:
    """Provide a connected SQLite store."""
    sqlite_store = SQLiteStore(test_db_path)
    sqlite_store.connect()
    yield sqlite_store
    sqlite_store.close()


@pytest.fixture
def dialect() -> SQLiteDialect:
    return SQLiteDialect()


@pytest.fixture
def schema(store: SQLiteStore, dialect: SQLiteDialect, registry: EntityRegistry) -> SQLiteStore:
    """Create tables for every sample entity."""
    for meta in registry.entities():
        for statement in dialect.create_table_statements(meta):
            store.execute(statement)
    return store


@pytest.fixture
def user_repo(schema: SQLiteStore, dialect: SQLiteDialect, registry: EntityRegistry) -> Repository:
    """Provide a User repository over a real SQLite database."""
    return Repository(schema, dialect, User, registry=registry)


@pytest.fixture
def recording_store() -> RecordingStore:
    """Provide a store fake that records SQL."""
    return RecordingStore()
