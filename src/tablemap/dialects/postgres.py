"""PostgreSQL dialect."""

from ..schema.metadata import EntityMetadata, FieldMetadata
from .base import BaseDialect


class PostgresDialect(BaseDialect):
    """PostgreSQL: ordinal placeholders, SERIAL keys, RETURNING for new ids."""

    type_map = {
        **BaseDialect.type_map,
        "decimal": "NUMERIC(10,2)",
        "json": "JSONB",
        "blob": "BYTEA",
        "bytes": "BYTEA",
    }

    @property
    def name(self) -> str:
        return "postgres"

    def placeholder(self, ordinal: int) -> str:
        return f"${ordinal + 1}"

    def auto_increment_type(self, field: FieldMetadata) -> str:
        logical = field.type.strip().lower()
        if logical == "bigint":
            return "BIGSERIAL"
        if logical == "smallint":
            return "SMALLSERIAL"
        return "SERIAL"

    def auto_increment_marker(self, field: FieldMetadata, data_type: str) -> str:
        return ""

    def insert_returning(self, meta: EntityMetadata) -> str:
        if not meta.has_auto_increment_key:
            return ""
        return f" RETURNING {self.quote_identifier(meta.primary_key.column)}"
