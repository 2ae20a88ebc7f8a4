"""SQLite dialect."""

from datetime import date
from decimal import Decimal
from typing import Any

from ..schema.metadata import FieldMetadata
from .base import BaseDialect


class SQLiteDialect(BaseDialect):
    """SQLite's affinity-based type system collapses most logical types."""

    type_map = {
        "string": "TEXT",
        "text": "TEXT",
        "int": "INTEGER",
        "integer": "INTEGER",
        "bigint": "INTEGER",
        "smallint": "INTEGER",
        "bool": "INTEGER",
        "boolean": "INTEGER",
        "datetime": "TEXT",
        "timestamp": "TEXT",
        "date": "TEXT",
        "float": "REAL",
        "double": "REAL",
        "decimal": "REAL",
        "json": "TEXT",
        "blob": "BLOB",
        "bytes": "BLOB",
    }
    fallback_type = "TEXT"

    @property
    def name(self) -> str:
        return "sqlite"

    def map_type(self, logical: str) -> str:
        physical = super().map_type(logical)
        if physical.startswith(("VARCHAR", "CHAR")):
            return "TEXT"
        if "INT" in physical:
            return "INTEGER"
        if physical.startswith(("DECIMAL", "NUMERIC")):
            return "REAL"
        return physical

    def auto_increment_type(self, field: FieldMetadata) -> str:
        # AUTOINCREMENT is only legal on INTEGER PRIMARY KEY
        return "INTEGER"

    def render_bool(self, value: bool) -> str:
        return "1" if value else "0"

    def bind_value(self, value: Any) -> Any:
        value = super().bind_value(value)
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, Decimal):
            return str(value)
        return value

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        # OFFSET is only valid after a LIMIT
        if limit is None and offset is not None:
            limit = -1
        return super().limit_clause(limit, offset)
