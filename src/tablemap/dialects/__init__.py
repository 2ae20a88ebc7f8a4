"""SQL dialects for the supported database families."""

from .base import BaseDialect, Dialect
from .mysql import MySQLDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect

_DIALECTS: dict[str, type[Dialect]] = {
    "base": BaseDialect,
    "sqlite": SQLiteDialect,
    "sqlite3": SQLiteDialect,
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
    "pg": PostgresDialect,
}


def get_dialect(name: str) -> Dialect:
    """Get a dialect by name.

    Args:
        name: Dialect name or alias, case-insensitive.

    Returns:
        A new dialect instance.

    Raises:
        ValueError: If the name is unknown.
    """
    dialect_cls = _DIALECTS.get(name.strip().lower())
    if dialect_cls is None:
        known = ", ".join(sorted(_DIALECTS))
        raise ValueError(f"Unknown dialect {name!r}; expected one of: {known}")
    return dialect_cls()


__all__ = [
    "Dialect",
    "BaseDialect",
    "SQLiteDialect",
    "MySQLDialect",
    "PostgresDialect",
    "get_dialect",
]
