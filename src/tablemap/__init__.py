"""tablemap - annotation-driven object/relational mapping for dataclasses."""

from loguru import logger

from .client import Client
from .core import (
    CancelledError,
    Config,
    Context,
    ConversionError,
    DeadlineExceededError,
    EntityNotRegisteredError,
    NotFoundError,
    SchemaError,
    StoreError,
    TableMapError,
    TransactionError,
    configure_logging,
    disable_logging,
)
from .dialects import (
    BaseDialect,
    Dialect,
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
    get_dialect,
)
from .repository import QueryBuilder, Repository
from .schema import (
    EntityMetadata,
    EntityRegistry,
    FieldMetadata,
    RelationDescriptor,
    RelationKind,
    column,
    get_default_registry,
    get_entity_metadata,
    register_entity,
)
from .store import EngineStore, SQLiteStore

__version__ = "0.1.0"

logger.disable("tablemap")

__all__ = [
    "Client",
    "Config",
    "Context",
    "column",
    "register_entity",
    "get_entity_metadata",
    "get_default_registry",
    "EntityRegistry",
    "EntityMetadata",
    "FieldMetadata",
    "RelationDescriptor",
    "RelationKind",
    "Dialect",
    "BaseDialect",
    "SQLiteDialect",
    "MySQLDialect",
    "PostgresDialect",
    "get_dialect",
    "Repository",
    "QueryBuilder",
    "SQLiteStore",
    "EngineStore",
    "TableMapError",
    "SchemaError",
    "EntityNotRegisteredError",
    "NotFoundError",
    "StoreError",
    "TransactionError",
    "CancelledError",
    "DeadlineExceededError",
    "ConversionError",
    "configure_logging",
    "disable_logging",
]
