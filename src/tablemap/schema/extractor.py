"""Entity metadata extraction from annotated dataclasses.

Entities are plain dataclasses. Each field may carry an ``orm`` annotation
string in its dataclass metadata, most conveniently via column():

    @dataclass
    class User:
        id: int = column("primaryKey;autoIncrement", default=0)
        name: str = column("notnull", default="")
        email: str = column("unique;notnull", default="")
        posts: list["Post"] = column("relation:OneToMany;foreignKey:UserID",
                                     default_factory=list)

Recognized keywords (semicolon separated, unknown ones are ignored):
primaryKey, autoIncrement, notnull / not null, unique, index,
type:<name>, default:<literal>, column:<name>, relation:<Kind>,
foreignKey:<Attr>, through:<Entity>. A field annotated "-" is not mapped.
"""

from __future__ import annotations

import dataclasses
import enum
import re
import types
import typing
import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from loguru import logger

from ..core.exceptions import SchemaError
from .metadata import EntityMetadata, FieldMetadata, RelationDescriptor, RelationKind

TAG_NAME = "orm"
SKIP_TAG = "-"

PRIMARY_KEY_OPTION = "primaryKey"
AUTO_INCREMENT_OPTION = "autoIncrement"
UNIQUE_OPTION = "unique"
INDEX_OPTION = "index"
NOT_NULL_OPTIONS = ("notnull", "not null")
TYPE_OPTION = "type:"
DEFAULT_OPTION = "default:"
COLUMN_OPTION = "column:"
RELATION_OPTION = "relation:"
FOREIGN_KEY_OPTION = "foreignKey:"
THROUGH_OPTION = "through:"

_RELATION_KINDS = {kind.value: kind for kind in RelationKind}
_BOOL_LITERALS = {"true": True, "1": True, "false": False, "0": False}


def column(tag: str = "", **kwargs: Any) -> Any:
    """Declare a dataclass field carrying an orm annotation.

    Args:
        tag: Semicolon separated annotation keywords.
        **kwargs: Passed through to dataclasses.field (default,
            default_factory, repr, ...).

    Returns:
        A dataclasses.field() object.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_NAME] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def snake_case(name: str) -> str:
    """Convert CamelCase (including acronyms) to snake_case."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.lower()


def pluralize(word: str) -> str:
    """Naive English pluralization used for default table names."""
    if re.search(r"[^aeiou]y$", word):
        return word[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", word):
        return word + "es"
    return word + "s"


def extract_entity_metadata(entity: Any) -> EntityMetadata:
    """Build EntityMetadata for a dataclass type or instance.

    Args:
        entity: The record class, or an (possibly uninitialized) instance.

    Returns:
        Immutable metadata describing the entity.

    Raises:
        SchemaError: If the type is not a dataclass or an annotation is
            malformed or conflicting.
    """
    entity_type = entity if isinstance(entity, type) else type(entity)
    entity_name = entity_type.__name__

    if not dataclasses.is_dataclass(entity_type):
        raise SchemaError("entity types must be dataclasses", entity=entity_name)

    hints = _resolve_type_hints(entity_type)
    fields: list[FieldMetadata] = []

    for dc_field in dataclasses.fields(entity_type):
        tag = str(dc_field.metadata.get(TAG_NAME, "")).strip()
        if tag == SKIP_TAG:
            continue
        annotation = hints.get(dc_field.name, dc_field.type)
        fields.append(_parse_field(entity_name, dc_field.name, annotation, tag))

    primary_key = _validate_fields(entity_name, fields)

    meta = EntityMetadata(
        entity_type=entity_type,
        table_name=_resolve_table_name(entity, entity_type),
        fields=tuple(fields),
        primary_key=primary_key,
    )
    logger.debug(
        f"Extracted metadata: entity={entity_name}, table={meta.table_name!r}, "
        f"columns={[f.column for f in meta.columns]}"
    )
    return meta


def _parse_field(entity_name: str, attr: str, annotation: Any, tag: str) -> FieldMetadata:
    """Parse one attribute's annotation string into FieldMetadata."""
    options = [opt.strip() for opt in tag.split(";") if opt.strip()]
    native_type, inferred_type = _infer_type(annotation)

    values: dict[str, Any] = {
        "name": attr,
        "column": snake_case(attr),
        "type": "",
        "native_type": native_type,
    }
    raw_default: str | None = None
    relation_kind: RelationKind | None = None
    foreign_key: str | None = None
    through: str | None = None

    for opt in options:
        if opt == PRIMARY_KEY_OPTION:
            values["is_primary_key"] = True
        elif opt == AUTO_INCREMENT_OPTION:
            values["is_auto_increment"] = True
        elif opt == UNIQUE_OPTION:
            values["is_unique"] = True
        elif opt == INDEX_OPTION:
            values["is_indexed"] = True
        elif opt in NOT_NULL_OPTIONS:
            values["is_nullable"] = False
        elif opt.startswith(TYPE_OPTION):
            values["type"] = _option_value(entity_name, attr, opt, TYPE_OPTION)
        elif opt.startswith(COLUMN_OPTION):
            values["column"] = _option_value(entity_name, attr, opt, COLUMN_OPTION)
        elif opt.startswith(DEFAULT_OPTION):
            raw_default = opt[len(DEFAULT_OPTION):].strip()
        elif opt.startswith(RELATION_OPTION):
            name = _option_value(entity_name, attr, opt, RELATION_OPTION)
            if name not in _RELATION_KINDS:
                raise SchemaError(
                    f"unknown relation kind {name!r}, expected one of {sorted(_RELATION_KINDS)}",
                    entity=entity_name,
                    attribute=attr,
                )
            relation_kind = _RELATION_KINDS[name]
        elif opt.startswith(FOREIGN_KEY_OPTION):
            foreign_key = _option_value(entity_name, attr, opt, FOREIGN_KEY_OPTION)
        elif opt.startswith(THROUGH_OPTION):
            through = _option_value(entity_name, attr, opt, THROUGH_OPTION)
        else:
            logger.debug(f"Ignoring unknown orm option {opt!r} on {entity_name}.{attr}")

    if relation_kind is None and (foreign_key or through):
        raise SchemaError(
            "foreignKey/through require a relation option", entity=entity_name, attribute=attr
        )

    if relation_kind is not None:
        if values.get("is_primary_key") or values.get("is_auto_increment"):
            raise SchemaError(
                "a relation cannot be a primary key", entity=entity_name, attribute=attr
            )
        values["relation"] = RelationDescriptor(
            kind=relation_kind,
            target=_relation_target(annotation),
            foreign_key=foreign_key,
            through=through,
        )

    if not values["type"]:
        values["type"] = inferred_type

    if raw_default is not None:
        values["default"] = _parse_default(entity_name, attr, raw_default, native_type)

    return FieldMetadata(**values)


def _option_value(entity_name: str, attr: str, opt: str, prefix: str) -> str:
    value = opt[len(prefix):].strip()
    if not value:
        raise SchemaError(f"option {prefix!r} needs a value", entity=entity_name, attribute=attr)
    return value


def _parse_default(entity_name: str, attr: str, raw: str, native_type: Any) -> Any:
    """Parse a default literal according to the field's native type."""
    if not raw:
        raise SchemaError("default option needs a value", entity=entity_name, attribute=attr)

    try:
        if native_type is bool:
            return _BOOL_LITERALS[raw.lower()]
        if native_type is int:
            return int(raw)
        if native_type is float:
            return float(raw)
        if native_type is Decimal:
            return Decimal(raw)
    except (KeyError, ValueError, InvalidOperation) as e:
        raise SchemaError(
            f"cannot parse default {raw!r} as {native_type.__name__}",
            entity=entity_name,
            attribute=attr,
        ) from e
    return raw


def _validate_fields(entity_name: str, fields: list[FieldMetadata]) -> FieldMetadata | None:
    """Check cross-field invariants and return the primary-key field."""
    columns = [f for f in fields if not f.is_relation]
    if not columns:
        raise SchemaError("entity has no mapped columns", entity=entity_name)

    seen: set[str] = set()
    for f in columns:
        if f.column in seen:
            raise SchemaError(f"duplicate column {f.column!r}", entity=entity_name, attribute=f.name)
        seen.add(f.column)

        if f.is_auto_increment:
            if not f.is_primary_key:
                raise SchemaError(
                    "autoIncrement requires primaryKey", entity=entity_name, attribute=f.name
                )
            if f.native_type is not int:
                raise SchemaError(
                    "autoIncrement requires an integer field", entity=entity_name, attribute=f.name
                )

    keys = [f for f in columns if f.is_primary_key]
    if len(keys) > 1:
        raise SchemaError(
            f"multiple primary keys declared: {[f.name for f in keys]}", entity=entity_name
        )
    return keys[0] if keys else None


def _resolve_table_name(entity: Any, entity_type: type) -> str:
    """Resolve the table name from the entity or derive it from the type name."""
    # A dataclass field may itself be called table_name
    if callable(getattr(entity_type, "table_name", None)):
        instance = entity if not isinstance(entity, type) else entity_type.__new__(entity_type)
        name = instance.table_name()
    elif isinstance(getattr(entity_type, "__tablename__", None), str):
        name = entity_type.__tablename__
    else:
        name = pluralize(snake_case(entity_type.__name__))

    if not isinstance(name, str) or not name.strip():
        raise SchemaError("table name must be a non-empty string", entity=entity_type.__name__)
    return name.strip()


def _resolve_type_hints(entity_type: type) -> dict[str, Any]:
    """Evaluate field annotations, leaving unresolvable ones as strings."""
    try:
        return typing.get_type_hints(entity_type)
    except NameError:
        pass

    localns = {entity_type.__name__: entity_type}
    hints: dict[str, Any] = {}
    for dc_field in dataclasses.fields(entity_type):
        annotation = dc_field.type
        if isinstance(annotation, str):
            holder = type(
                "_FieldHint",
                (),
                {"__annotations__": {dc_field.name: annotation}, "__module__": entity_type.__module__},
            )
            try:
                annotation = typing.get_type_hints(holder, localns=localns)[dc_field.name]
            except NameError:
                logger.debug(
                    f"Unresolved annotation {annotation!r} on {entity_type.__name__}.{dc_field.name}"
                )
        hints[dc_field.name] = annotation
    return hints


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _infer_type(annotation: Any) -> tuple[Any, str]:
    """Map a Python annotation to (native type, logical storage type)."""
    annotation = _unwrap_optional(annotation)
    origin = typing.get_origin(annotation) or annotation

    if isinstance(origin, str):
        return _infer_from_name(origin)
    if origin is bool:
        return bool, "boolean"
    if origin is int:
        return int, "integer"
    if origin is float:
        return float, "float"
    if origin is str:
        return str, "string"
    if origin is Decimal:
        return Decimal, "decimal"
    # datetime subclasses date, so it must be checked first
    if origin is datetime:
        return datetime, "datetime"
    if origin is date:
        return date, "date"
    if origin in (bytes, bytearray):
        return bytes, "blob"
    if origin is uuid.UUID:
        return uuid.UUID, "varchar(36)"
    if origin in (dict, list):
        return origin, "json"
    if isinstance(origin, type) and issubclass(origin, enum.Enum):
        sample = next(iter(origin), None)
        if sample is not None and isinstance(sample.value, int):
            return origin, "integer"
        return origin, "string"
    return object, "text"


def _infer_from_name(name: str) -> tuple[Any, str]:
    """Fallback inference for annotations left as unresolved strings."""
    base = name.replace("Optional[", "").rstrip("]").split("|")[0].strip()
    builtin = {"bool": bool, "int": int, "float": float, "str": str, "bytes": bytes}
    if base in builtin:
        return _infer_type(builtin[base])
    return object, "text"


def _relation_target(annotation: Any) -> type | str | None:
    """Find the related entity in annotations like list[Post] or Optional[User]."""
    annotation = _unwrap_optional(annotation)
    origin = typing.get_origin(annotation)
    if origin in (list, set, tuple, frozenset):
        args = typing.get_args(annotation)
        annotation = args[0] if args else None

    if isinstance(annotation, typing.ForwardRef):
        return annotation.__forward_arg__
    if isinstance(annotation, str):
        match = re.search(r"([A-Za-z_][\w.]*)['\"]?\]*\s*$", annotation)
        return match.group(1) if match else annotation
    if isinstance(annotation, type):
        return annotation
    return None
