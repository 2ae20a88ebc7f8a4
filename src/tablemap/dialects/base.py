"""Dialect abstraction shared by every database family.

A dialect is a stateless strategy object turning entity metadata into
DDL/DML fragments. Subclasses override only what genuinely differs between
families: placeholder syntax, identifier quoting, the physical type table
and auto-increment handling.
"""

from __future__ import annotations

import enum
import json
import re
import uuid
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

from ..schema.metadata import EntityMetadata, FieldMetadata

# Default expressions rendered without quoting
SQL_KEYWORD_DEFAULTS = {"CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME", "NULL"}

_SIZED_STRING = re.compile(r"^(var)?char\s*\(\s*\d+\s*\)$")
_SIZED_NUMERIC = re.compile(r"^(decimal|numeric)\s*\(\s*\d+\s*(,\s*\d+\s*)?\)$")
_INTEGER_FAMILY = re.compile(r"^(tiny|small|medium|big)?int(eger)?(\s*\(\s*\d+\s*\))?$")


class Dialect(ABC):
    """Capability set every database family implements."""

    #: Character used to quote identifiers.
    quote_char = '"'

    #: Logical type name -> physical column type.
    type_map: dict[str, str] = {}

    #: Physical type for unrecognized logical types.
    fallback_type = "VARCHAR(255)"

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable dialect identifier."""

    @abstractmethod
    def placeholder(self, ordinal: int) -> str:
        """Positional parameter marker for a zero-based ordinal."""

    # -------------------------------------------------------------------------
    # Identifiers and values
    # -------------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Quote a table, column or index name."""
        q = self.quote_char
        return f"{q}{name.replace(q, q + q)}{q}"

    def render_bool(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def render_default(self, value: Any) -> str:
        """Render a parsed default value as a DDL literal."""
        if isinstance(value, bool):
            return self.render_bool(value)
        if isinstance(value, (int, float, Decimal)):
            return str(value)

        text = str(value)
        if text.upper() in SQL_KEYWORD_DEFAULTS:
            return text.upper()
        if len(text) >= 2 and text.startswith("'") and text.endswith("'"):
            return text
        return "'" + text.replace("'", "''") + "'"

    def bind_value(self, value: Any) -> Any:
        """Adapt a Python value to a driver parameter."""
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        if isinstance(value, uuid.UUID):
            return str(value)
        return value

    def bind_placeholders(self, sql: str, start: int = 0) -> tuple[str, int]:
        """Rewrite ``?`` markers in a fragment to this dialect's markers.

        Markers inside quoted literals and quoted identifiers are left
        alone. Ordinals are assigned left to right starting at start.

        Returns:
            Tuple of (rewritten sql, next free ordinal).
        """
        out: list[str] = []
        ordinal = start
        quote: str | None = None
        for ch in sql:
            if quote is not None:
                if ch == quote:
                    quote = None
                out.append(ch)
            elif ch in ("'", '"', "`"):
                quote = ch
                out.append(ch)
            elif ch == "?":
                out.append(self.placeholder(ordinal))
                ordinal += 1
            else:
                out.append(ch)
        return "".join(out), ordinal

    def insert_returning(self, meta: EntityMetadata) -> str:
        """Clause appended to INSERT to read back a generated key."""
        return ""

    def default_values_clause(self) -> str:
        """VALUES part of an INSERT that sets no columns explicitly."""
        return "DEFAULT VALUES"

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        """Render LIMIT and OFFSET; empty when neither is set."""
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def data_type(self, field: FieldMetadata) -> str:
        """Map a field's logical type to a physical column type."""
        if field.is_auto_increment:
            return self.auto_increment_type(field)
        return self.map_type(field.type)

    def map_type(self, logical: str) -> str:
        """Map a logical type name, case-insensitively."""
        key = " ".join(logical.strip().lower().split())
        if key in self.type_map:
            return self.type_map[key]
        if _SIZED_STRING.match(key):
            return self.sized_string_type(key)
        if _INTEGER_FAMILY.match(key):
            return key.upper()
        if _SIZED_NUMERIC.match(key):
            return key.upper()
        return self.fallback_type

    def sized_string_type(self, key: str) -> str:
        return key.upper().replace(" ", "")

    def auto_increment_type(self, field: FieldMetadata) -> str:
        return self.map_type(field.type or "integer")

    def auto_increment_marker(self, field: FieldMetadata, data_type: str) -> str:
        """Marker appended after PRIMARY KEY for auto-increment columns."""
        return "AUTOINCREMENT"

    # -------------------------------------------------------------------------
    # DDL
    # -------------------------------------------------------------------------

    def column_definition(self, field: FieldMetadata) -> str:
        """Render one column clause: type, key, increment, null, unique, default."""
        data_type = self.data_type(field)
        parts = [self.quote_identifier(field.column), data_type]

        if field.is_primary_key:
            parts.append("PRIMARY KEY")

        if field.is_auto_increment:
            marker = self.auto_increment_marker(field, data_type)
            if marker:
                parts.append(marker)

        if not field.is_nullable:
            parts.append("NOT NULL")

        if field.is_unique:
            parts.append("UNIQUE")

        if field.default is not None:
            parts.append(f"DEFAULT {self.render_default(field.default)}")

        return " ".join(parts)

    def table_options(self) -> str:
        """Text placed after the closing parenthesis of CREATE TABLE."""
        return ""

    def index_name(self, meta: EntityMetadata, field: FieldMetadata) -> str:
        return f"idx_{meta.table_name}_{field.column}"

    def create_index_sql(self, meta: EntityMetadata, field: FieldMetadata) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {self.quote_identifier(self.index_name(meta, field))} "
            f"ON {self.quote_identifier(meta.table_name)} ({self.quote_identifier(field.column)});"
        )

    def create_table_statements(self, meta: EntityMetadata) -> list[str]:
        """CREATE TABLE followed by one CREATE INDEX per indexed column."""
        columns = ",\n".join(f"  {self.column_definition(f)}" for f in meta.columns)
        statements = [
            f"CREATE TABLE IF NOT EXISTS {self.quote_identifier(meta.table_name)} (\n"
            f"{columns}\n){self.table_options()};"
        ]
        statements.extend(self.create_index_sql(meta, f) for f in meta.indexed_fields)
        return statements

    def create_table_sql(self, meta: EntityMetadata) -> str:
        """Full DDL script for an entity."""
        return "\n".join(self.create_table_statements(meta))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class BaseDialect(Dialect):
    """Generic ANSI-flavoured dialect used when no family is specified."""

    type_map = {
        "string": "VARCHAR(255)",
        "text": "TEXT",
        "int": "INTEGER",
        "integer": "INTEGER",
        "bigint": "BIGINT",
        "smallint": "SMALLINT",
        "bool": "BOOLEAN",
        "boolean": "BOOLEAN",
        "datetime": "TIMESTAMP",
        "timestamp": "TIMESTAMP",
        "date": "DATE",
        "float": "REAL",
        "double": "DOUBLE PRECISION",
        "decimal": "DECIMAL(10,2)",
        "json": "TEXT",
        "blob": "BLOB",
        "bytes": "BLOB",
    }

    @property
    def name(self) -> str:
        return "base"

    def placeholder(self, ordinal: int) -> str:
        return "?"
