"""MySQL / MariaDB dialect."""

from ..schema.metadata import EntityMetadata, FieldMetadata
from .base import BaseDialect

AUTO_INCREMENT = "AUTO_INCREMENT"

# Largest row count MySQL accepts, used for OFFSET without LIMIT
MAX_LIMIT = 18446744073709551615


class MySQLDialect(BaseDialect):
    """MySQL: backtick quoting, AUTO_INCREMENT marker, InnoDB tables."""

    quote_char = "`"
    type_map = {
        **BaseDialect.type_map,
        "int": "INT",
        "integer": "INT",
        "bool": "TINYINT(1)",
        "boolean": "TINYINT(1)",
        "datetime": "DATETIME",
        "float": "FLOAT",
        "double": "DOUBLE",
        "json": "JSON",
    }

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, ordinal: int) -> str:
        return "?"

    def render_bool(self, value: bool) -> str:
        return "1" if value else "0"

    def auto_increment_type(self, field: FieldMetadata) -> str:
        if AUTO_INCREMENT.lower() in field.type.lower():
            return field.type.strip().upper()
        return super().auto_increment_type(field)

    def auto_increment_marker(self, field: FieldMetadata, data_type: str) -> str:
        if AUTO_INCREMENT in data_type.upper():
            return ""
        return AUTO_INCREMENT

    def default_values_clause(self) -> str:
        return "() VALUES ()"

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is not None:
            limit = MAX_LIMIT
        return super().limit_clause(limit, offset)

    def table_options(self) -> str:
        return " ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci"

    def create_index_sql(self, meta: EntityMetadata, field: FieldMetadata) -> str:
        return (
            f"CREATE INDEX {self.quote_identifier(self.index_name(meta, field))} "
            f"ON {self.quote_identifier(meta.table_name)} ({self.quote_identifier(field.column)});"
        )
