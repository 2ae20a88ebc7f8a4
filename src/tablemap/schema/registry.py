"""Process-wide entity metadata registry.

Metadata for a record type is extracted once, on first registration, and
published into a write-once mapping. Writers are serialized by a lock;
lookups read the mapping without locking since published entries are
never replaced or mutated.
"""

from __future__ import annotations

import threading
from typing import Any

from loguru import logger

from ..core.exceptions import EntityNotRegisteredError
from .extractor import extract_entity_metadata
from .metadata import EntityMetadata


def _entity_type(entity: Any) -> type:
    return entity if isinstance(entity, type) else type(entity)


class EntityRegistry:
    """Registry mapping record types to their EntityMetadata."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._entities: dict[type, EntityMetadata] = {}
        self._write_lock = threading.Lock()

    def register_entity(self, entity: Any) -> EntityMetadata:
        """Register a record type, extracting its metadata on first sight.

        Args:
            entity: Record class or instance.

        Returns:
            The published metadata. Repeat registrations return the same
            object without re-extracting.

        Raises:
            SchemaError: If metadata extraction fails. Nothing is published.
        """
        entity_type = _entity_type(entity)

        meta = self._entities.get(entity_type)
        if meta is not None:
            return meta

        with self._write_lock:
            meta = self._entities.get(entity_type)
            if meta is not None:
                return meta

            meta = extract_entity_metadata(entity)
            self._entities[entity_type] = meta

        logger.info(f"Entity registered: {entity_type.__name__} -> {meta.table_name!r}")
        return meta

    def get_entity_metadata(self, entity: Any) -> EntityMetadata | None:
        """Get metadata for a record class or instance, None if unknown."""
        return self._entities.get(_entity_type(entity))

    def require(self, entity: Any) -> EntityMetadata:
        """Get metadata for a registered type.

        Raises:
            EntityNotRegisteredError: If the type was never registered.
        """
        meta = self.get_entity_metadata(entity)
        if meta is None:
            raise EntityNotRegisteredError(_entity_type(entity).__name__)
        return meta

    def is_registered(self, entity: Any) -> bool:
        """Check if a record type is registered."""
        return _entity_type(entity) in self._entities

    def entities(self) -> list[EntityMetadata]:
        """Get metadata for all registered types, in registration order."""
        return list(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)


# =============================================================================
# Default Registry
# =============================================================================

_default_registry: EntityRegistry | None = None
_default_lock = threading.Lock()


def get_default_registry() -> EntityRegistry:
    """Get the process-wide registry, creating it on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = EntityRegistry()
    return _default_registry


def register_entity(entity: Any) -> EntityMetadata:
    """Register a record type with the process-wide registry."""
    return get_default_registry().register_entity(entity)


def get_entity_metadata(entity: Any) -> EntityMetadata | None:
    """Look up a record type in the process-wide registry."""
    return get_default_registry().get_entity_metadata(entity)
