"""Tests for paramstyle rewriting."""

import pytest

from tablemap.store.params import to_paramstyle


class TestToParamstyle:
    """Tests for to_paramstyle()."""

    def test_qmark_unchanged(self):
        sql, params = to_paramstyle("SELECT * FROM t WHERE a = ? AND b = ?", [1, 2], "qmark")

        assert sql == "SELECT * FROM t WHERE a = ? AND b = ?"
        assert params == (1, 2)

    def test_pyformat_from_dollar_ordinals(self):
        """psycopg2 and PyMySQL style markers with keyed parameters."""
        sql, params = to_paramstyle('SELECT * FROM "users" WHERE "id" = $1', [7], "pyformat")

        assert sql == 'SELECT * FROM "users" WHERE "id" = %(p0)s'
        assert params == {"p0": 7}

    def test_format_from_qmark(self):
        sql, params = to_paramstyle("INSERT INTO t (a, b) VALUES (?, ?)", ["x", "y"], "format")

        assert sql == "INSERT INTO t (a, b) VALUES (%s, %s)"
        assert params == ("x", "y")

    def test_percent_signs_doubled_for_format_styles(self):
        sql, _ = to_paramstyle("SELECT * FROM t WHERE a LIKE 'x%' AND b = ?", [1], "pyformat")

        assert sql == "SELECT * FROM t WHERE a LIKE 'x%%' AND b = %(p0)s"

    def test_percent_doubled_without_parameters(self):
        sql, params = to_paramstyle("SELECT 5 % 2", [], "format")

        assert sql == "SELECT 5 %% 2"
        assert params == ()

    def test_markers_in_literals_untouched(self):
        sql, params = to_paramstyle("SELECT '?', \"$1\" FROM t WHERE a = ?", [3], "named")

        assert sql == "SELECT '?', \"$1\" FROM t WHERE a = :p0"
        assert params == {"p0": 3}

    def test_repeated_ordinal_for_positional_style(self):
        sql, params = to_paramstyle(
            "SELECT * FROM t WHERE a = $2 OR b = $1 OR c = $2", ["one", "two"], "format"
        )

        assert sql == "SELECT * FROM t WHERE a = %s OR b = %s OR c = %s"
        assert params == ("two", "one", "two")

    def test_numeric(self):
        sql, params = to_paramstyle("SELECT * FROM t WHERE a = ? AND b = ?", [1, 2], "numeric")

        assert sql == "SELECT * FROM t WHERE a = :1 AND b = :2"
        assert params == (1, 2)

    def test_missing_parameter(self):
        with pytest.raises(ValueError, match="No parameter"):
            to_paramstyle("SELECT * FROM t WHERE a = $2", [1], "format")

    def test_unknown_paramstyle(self):
        with pytest.raises(ValueError, match="Unsupported paramstyle"):
            to_paramstyle("SELECT 1", [], "tilde")
