"""Tests for DDL rendering across dialects."""

import pytest

from tablemap.dialects import (
    BaseDialect,
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
    get_dialect,
)
from tablemap.schema import extract_entity_metadata
from tablemap.schema.metadata import FieldMetadata
from tests.fakes import AuditEntry, Post, User


@pytest.fixture
def user_meta():
    return extract_entity_metadata(User)


class TestSQLiteDDL:
    """Tests for SQLite CREATE TABLE output."""

    def test_create_table_statements(self, user_meta):
        """One CREATE TABLE and one CREATE INDEX for the indexed column."""
        statements = SQLiteDialect().create_table_statements(user_meta)

        assert len(statements) == 2
        table, index = statements
        assert table.startswith('CREATE TABLE IF NOT EXISTS "users" (')
        assert '"id" INTEGER PRIMARY KEY AUTOINCREMENT' in table
        assert '"name" TEXT NOT NULL' in table
        assert '"email" TEXT NOT NULL UNIQUE' in table
        assert '"age" INTEGER' in table
        assert "posts" not in table
        assert index == 'CREATE INDEX IF NOT EXISTS "idx_users_age" ON "users" ("age");'

    def test_create_table_sql_joins_statements(self, user_meta):
        sql = SQLiteDialect().create_table_sql(user_meta)

        assert sql.count("CREATE TABLE") == 1
        assert sql.count("CREATE INDEX") == 1

    def test_boolean_default(self):
        table = SQLiteDialect().create_table_statements(extract_entity_metadata(Post))[0]

        assert '"published" INTEGER DEFAULT 0' in table
        assert '"body" TEXT' in table

    def test_keyword_default_unquoted(self):
        table = SQLiteDialect().create_table_sql(extract_entity_metadata(AuditEntry))

        assert '"created_at" TEXT DEFAULT CURRENT_TIMESTAMP' in table


class TestPostgresDDL:
    """Tests for PostgreSQL CREATE TABLE output."""

    def test_serial_primary_key(self, user_meta):
        table = PostgresDialect().create_table_statements(user_meta)[0]

        assert '"id" SERIAL PRIMARY KEY,' in table
        assert "AUTOINCREMENT" not in table
        assert '"name" VARCHAR(255) NOT NULL' in table

    def test_bigint_serial(self):
        field = FieldMetadata(
            name="id", column="id", type="bigint", native_type=int,
            is_primary_key=True, is_auto_increment=True,
        )
        assert PostgresDialect().data_type(field) == "BIGSERIAL"

    def test_boolean_default(self):
        table = PostgresDialect().create_table_sql(extract_entity_metadata(Post))

        assert '"published" BOOLEAN DEFAULT FALSE' in table


class TestMySQLDDL:
    """Tests for MySQL CREATE TABLE output."""

    def test_backticks_and_auto_increment(self, user_meta):
        table, index = MySQLDialect().create_table_statements(user_meta)

        assert "`id` INT PRIMARY KEY AUTO_INCREMENT" in table
        assert table.endswith(
            ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci;"
        )
        assert index == "CREATE INDEX `idx_users_age` ON `users` (`age`);"

    def test_auto_increment_not_duplicated(self):
        field = FieldMetadata(
            name="id", column="id", type="int auto_increment", native_type=int,
            is_primary_key=True, is_auto_increment=True,
        )
        definition = MySQLDialect().column_definition(field)

        assert definition.count("AUTO_INCREMENT") == 1


class TestTypeMapping:
    """Tests for logical to physical type mapping."""

    @pytest.mark.parametrize(
        "dialect,logical,expected",
        [
            (SQLiteDialect(), "varchar(100)", "TEXT"),
            (SQLiteDialect(), "bigint", "INTEGER"),
            (SQLiteDialect(), "mystery", "TEXT"),
            (PostgresDialect(), "varchar(100)", "VARCHAR(100)"),
            (PostgresDialect(), "json", "JSONB"),
            (PostgresDialect(), "mystery", "VARCHAR(255)"),
            (MySQLDialect(), "boolean", "TINYINT(1)"),
            (MySQLDialect(), "datetime", "DATETIME"),
            (BaseDialect(), "Decimal", "DECIMAL(10,2)"),
        ],
    )
    def test_map_type(self, dialect, logical, expected):
        assert dialect.map_type(logical) == expected

    def test_base_dialect_marks_auto_increment(self, user_meta):
        table = BaseDialect().create_table_sql(user_meta)

        assert '"id" INTEGER PRIMARY KEY AUTOINCREMENT' in table


class TestRenderDefault:
    """Tests for default literal rendering."""

    @pytest.mark.parametrize(
        "value,expected",
        [(5, "5"), (1.5, "1.5"), ("now", "'now'"), ("it's", "'it''s'"),
         ("current_date", "CURRENT_DATE"), ("'quoted'", "'quoted'")],
    )
    def test_render_default(self, value, expected):
        assert PostgresDialect().render_default(value) == expected

    def test_boolean_literals(self):
        assert SQLiteDialect().render_default(True) == "1"
        assert MySQLDialect().render_default(False) == "0"
        assert PostgresDialect().render_default(True) == "TRUE"


class TestGetDialect:
    """Tests for the dialect factory."""

    @pytest.mark.parametrize(
        "name,cls",
        [("sqlite", SQLiteDialect), ("sqlite3", SQLiteDialect), ("Postgres", PostgresDialect),
         ("postgresql", PostgresDialect), ("pg", PostgresDialect), ("mariadb", MySQLDialect),
         ("base", BaseDialect)],
    )
    def test_aliases(self, name, cls):
        assert isinstance(get_dialect(name), cls)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("oracle")
