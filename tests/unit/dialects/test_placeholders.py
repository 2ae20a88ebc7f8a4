"""Tests for placeholder rendering, quoting and value binding."""

import json
from datetime import datetime
from decimal import Decimal

from tablemap.dialects import MySQLDialect, PostgresDialect, SQLiteDialect
from tablemap.schema import extract_entity_metadata
from tests.fakes import Status, Tag, User


class TestPlaceholders:
    """Tests for placeholder markers."""

    def test_postgres_ordinals(self):
        """Postgres markers are $1..$k in order."""
        dialect = PostgresDialect()
        assert [dialect.placeholder(i) for i in range(3)] == ["$1", "$2", "$3"]

    def test_question_mark_dialects(self):
        assert SQLiteDialect().placeholder(7) == "?"
        assert MySQLDialect().placeholder(0) == "?"

    def test_bind_placeholders_numbers_in_order(self):
        sql, next_ordinal = PostgresDialect().bind_placeholders(
            "a = ? AND b IN (?, ?) OR c = ?"
        )

        assert sql == "a = $1 AND b IN ($2, $3) OR c = $4"
        assert next_ordinal == 4

    def test_bind_placeholders_skips_literals(self):
        sql, next_ordinal = PostgresDialect().bind_placeholders(
            "note = 'why?' AND \"odd?col\" = ?", start=2
        )

        assert sql == "note = 'why?' AND \"odd?col\" = $3"
        assert next_ordinal == 3


class TestQuoting:
    """Tests for identifier quoting."""

    def test_quote_styles(self):
        assert SQLiteDialect().quote_identifier("users") == '"users"'
        assert MySQLDialect().quote_identifier("users") == "`users`"

    def test_embedded_quotes_doubled(self):
        assert PostgresDialect().quote_identifier('we"ird') == '"we""ird"'
        assert MySQLDialect().quote_identifier("we`ird") == "`we``ird`"


class TestReturning:
    """Tests for generated key retrieval clauses."""

    def test_postgres_returning(self):
        meta = extract_entity_metadata(User)
        assert PostgresDialect().insert_returning(meta) == ' RETURNING "id"'

    def test_no_returning_without_auto_key(self):
        assert PostgresDialect().insert_returning(extract_entity_metadata(Tag)) == ""
        assert SQLiteDialect().insert_returning(extract_entity_metadata(User)) == ""


class TestBindValue:
    """Tests for parameter adaptation."""

    def test_enum_and_json(self):
        dialect = PostgresDialect()

        assert dialect.bind_value(Status.ACTIVE) == "active"
        assert json.loads(dialect.bind_value({"a": [1, 2]})) == {"a": [1, 2]}

    def test_sqlite_text_types(self):
        dialect = SQLiteDialect()

        assert dialect.bind_value(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
        assert dialect.bind_value(Decimal("1.10")) == "1.10"
        assert dialect.bind_value(7) == 7


class TestLimitClause:
    """Tests for LIMIT/OFFSET rendering."""

    def test_limit_and_offset(self):
        assert PostgresDialect().limit_clause(10, 5) == "LIMIT 10 OFFSET 5"

    def test_offset_without_limit(self):
        assert PostgresDialect().limit_clause(None, 5) == "OFFSET 5"
        assert SQLiteDialect().limit_clause(None, 5) == "LIMIT -1 OFFSET 5"
        assert MySQLDialect().limit_clause(None, 5).endswith("OFFSET 5")

    def test_nothing(self):
        assert SQLiteDialect().limit_clause(None, None) == ""
