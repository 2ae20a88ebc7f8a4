"""Client wiring a store, a dialect and registered entities together."""

from __future__ import annotations

from typing import Any, TypeVar

from loguru import logger

from .core.config import Config
from .core.exceptions import StoreError
from .core.logging import configure_logging
from .dialects import Dialect, get_dialect
from .dialects.sqlite import SQLiteDialect
from .repository.repository import Repository
from .schema.metadata import EntityMetadata
from .schema.registry import EntityRegistry, get_default_registry
from .store.engine import EngineStore
from .store.protocols import Store
from .store.sqlite import SQLiteStore

T = TypeVar("T")


class Client:
    """Entry point owning a store and handing out repositories.

    Example:
        with Client(SQLiteStore("app.db"), SQLiteDialect(), User, Post) as client:
            users = client.repository(User)
            users.save(User(name="Ada"))
    """

    def __init__(
        self,
        store: Store,
        dialect: Dialect,
        *entities: Any,
        create_tables: bool = True,
        config: Config | None = None,
        registry: EntityRegistry | None = None,
    ):
        """Initialize client, registering entities and creating their tables.

        Args:
            store: Connected store statements run on.
            dialect: Dialect matching the store's database.
            *entities: Record classes (or instances) to register.
            create_tables: Run CREATE TABLE / CREATE INDEX for each entity.
            config: Settings applied to every repository.
            registry: Registry to register into; process-wide by default.

        Raises:
            SchemaError: If an entity's metadata is invalid.
            StoreError: If table creation fails.
        """
        self.store = store
        self.dialect = dialect
        self.config = config or Config(dialect=dialect.name)
        self.registry = registry if registry is not None else get_default_registry()

        registered = [self.register(entity) for entity in entities]
        if create_tables:
            for meta in registered:
                self.create_table(meta)

    @classmethod
    def connect(cls, config: Config | None = None, *entities: Any, **kwargs: Any) -> "Client":
        """Build a store and dialect from config and connect.

        The sqlite dialect uses SQLiteStore with config.dsn as the file path
        (or ":memory:"), unless dsn is a SQLAlchemy URL. Every other dialect
        uses EngineStore with dsn as the SQLAlchemy URL.

        Raises:
            ValueError: If the dialect is unknown.
            StoreError: If the store cannot be reached.
        """
        config = config or Config.from_env_or_file()
        configure_logging(config.log_level)

        dialect = get_dialect(config.dialect)
        if isinstance(dialect, SQLiteDialect) and "://" not in config.dsn:
            store: Store = SQLiteStore(config.dsn)
        else:
            store = EngineStore(config.dsn)

        store.connect()
        try:
            store.ping()
        except StoreError:
            store.close()
            raise
        logger.info(f"Connected {store!r} with {dialect.name} dialect")

        return cls(store, dialect, *entities, config=config, **kwargs)

    def register(self, entity: Any) -> EntityMetadata:
        """Register an entity type with the client's registry."""
        return self.registry.register_entity(entity)

    def create_table(self, entity: Any) -> None:
        """Create the table and indexes for a registered entity."""
        meta = entity if isinstance(entity, EntityMetadata) else self.registry.require(entity)
        for statement in self.dialect.create_table_statements(meta):
            logger.debug(f"DDL: {statement}")
            self.store.execute(statement)
        logger.info(f"Table ready: {meta.table_name}")

    def repository(self, entity_type: type[T]) -> Repository[T]:
        """Get a repository for a registered entity type.

        Raises:
            EntityNotRegisteredError: If the type was never registered.
        """
        return Repository(
            self.store,
            self.dialect,
            entity_type,
            registry=self.registry,
            strict_conversion=self.config.strict_conversion,
            chunk_size=self.config.chunk_size,
            timeout=self.config.default_timeout,
        )

    def close(self) -> None:
        """Close the underlying store."""
        self.store.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Client({self.store!r}, dialect={self.dialect.name!r})"
