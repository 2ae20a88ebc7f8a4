"""Schema metadata types produced by the extractor.

All types here are frozen: once an entity has been registered its metadata
is shared, unsynchronized, by every repository and dialect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RelationKind(Enum):
    """Relationship cardinality between two entities."""

    ONE_TO_ONE = "OneToOne"
    ONE_TO_MANY = "OneToMany"
    MANY_TO_ONE = "ManyToOne"
    MANY_TO_MANY = "ManyToMany"


@dataclass(frozen=True)
class RelationDescriptor:
    """Describes a relation declared on an entity attribute.

    Attributes:
        kind: Relationship cardinality.
        target: Related entity class, or its name when the annotation is a
            forward reference that could not be resolved yet.
        foreign_key: Attribute name holding the foreign key.
        through: Join entity name for many-to-many relations.
    """

    kind: RelationKind
    target: type | str | None = None
    foreign_key: str | None = None
    through: str | None = None

    @property
    def target_name(self) -> str | None:
        """Name of the related entity."""
        if isinstance(self.target, type):
            return self.target.__name__
        return self.target


@dataclass(frozen=True)
class FieldMetadata:
    """Schema description of one mapped attribute.

    Attributes:
        name: Attribute name on the record type.
        column: Storage column name.
        type: Logical storage type (e.g. "string", "integer", "varchar(100)").
        native_type: Python type values are converted to when scanned.
        is_primary_key: Column is the primary key.
        is_auto_increment: Store assigns the value on insert.
        is_nullable: Column accepts NULL.
        is_unique: Column carries a UNIQUE constraint.
        is_indexed: A secondary index is created for the column.
        default: Parsed default value, None when not declared.
        relation: Relation descriptor; such fields have no column.
    """

    name: str
    column: str
    type: str
    native_type: Any = str
    is_primary_key: bool = False
    is_auto_increment: bool = False
    is_nullable: bool = True
    is_unique: bool = False
    is_indexed: bool = False
    default: Any = None
    relation: RelationDescriptor | None = None

    @property
    def is_relation(self) -> bool:
        """Whether this field describes a relation instead of a column."""
        return self.relation is not None


@dataclass(frozen=True)
class EntityMetadata:
    """Complete schema of one registered entity type.

    Attributes:
        entity_type: The registered record class.
        table_name: Storage table name.
        fields: Mapped fields in declaration order.
        primary_key: The primary-key field, or None.
    """

    entity_type: type
    table_name: str
    fields: tuple[FieldMetadata, ...]
    primary_key: FieldMetadata | None = None
    _by_column: dict[str, FieldMetadata] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_by_column", {f.column: f for f in self.fields if not f.is_relation}
        )

    @property
    def name(self) -> str:
        """Entity type name, used in error messages."""
        return self.entity_type.__name__

    @property
    def columns(self) -> tuple[FieldMetadata, ...]:
        """Fields backed by a storage column, in declaration order."""
        return tuple(f for f in self.fields if not f.is_relation)

    @property
    def relations(self) -> tuple[FieldMetadata, ...]:
        """Fields describing relations."""
        return tuple(f for f in self.fields if f.is_relation)

    @property
    def indexed_fields(self) -> tuple[FieldMetadata, ...]:
        """Fields that need a secondary index.

        Primary-key and unique columns are skipped.
        """
        return tuple(
            f
            for f in self.columns
            if f.is_indexed and not f.is_primary_key and not f.is_unique
        )

    @property
    def has_auto_increment_key(self) -> bool:
        return self.primary_key is not None and self.primary_key.is_auto_increment

    def field_for_column(self, column: str) -> FieldMetadata | None:
        """Look up the field mapped to a storage column."""
        return self._by_column.get(column)

    def field_named(self, name: str) -> FieldMetadata | None:
        """Look up a field by attribute name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None
