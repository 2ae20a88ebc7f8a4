"""Entity schema: metadata types, extraction and the process-wide registry."""

from .extractor import column, extract_entity_metadata, pluralize, snake_case
from .metadata import EntityMetadata, FieldMetadata, RelationDescriptor, RelationKind
from .registry import (
    EntityRegistry,
    get_default_registry,
    get_entity_metadata,
    register_entity,
)

__all__ = [
    "EntityMetadata",
    "FieldMetadata",
    "RelationDescriptor",
    "RelationKind",
    "EntityRegistry",
    "column",
    "extract_entity_metadata",
    "get_default_registry",
    "get_entity_metadata",
    "register_entity",
    "pluralize",
    "snake_case",
]
