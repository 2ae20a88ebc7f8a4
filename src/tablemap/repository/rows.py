"""Marshaling of result rows into entity records."""

from __future__ import annotations

import dataclasses
from typing import Any

from loguru import logger

from ..core.exceptions import ConversionError
from ..schema.conversion import convert_value, zero_value
from ..schema.metadata import EntityMetadata
from ..store.protocols import QueryResult


def new_record(meta: EntityMetadata) -> Any:
    """Create an empty record without calling its __init__.

    Every dataclass field is set to its declared default, its
    default_factory result, or the zero value of its native type.
    """
    entity_type = meta.entity_type
    record = entity_type.__new__(entity_type)
    for f in dataclasses.fields(entity_type):
        if f.default is not dataclasses.MISSING:
            value = f.default
        elif f.default_factory is not dataclasses.MISSING:
            value = f.default_factory()
        else:
            mapped = meta.field_named(f.name)
            value = zero_value(mapped.native_type) if mapped is not None else None
        object.__setattr__(record, f.name, value)
    return record


def marshal_rows(meta: EntityMetadata, result: QueryResult, *, strict: bool = False) -> list[Any]:
    """Build one record per result row.

    Columns are matched by name against the result set's own column list,
    so any column order and any subset of columns works. Unknown columns
    are ignored; fields whose column is absent or NULL keep their default.

    Args:
        meta: Metadata of the record type to build.
        result: Rows returned by the store.
        strict: Raise ConversionError for inconvertible values instead of
            logging and skipping them.

    Returns:
        Records in row order.

    Raises:
        ConversionError: If strict and a value cannot be converted.
    """
    positions = {name: i for i, name in enumerate(result.columns)}
    plan = [
        (f, positions[f.column]) for f in meta.columns if f.column in positions
    ]

    records = []
    for row in result.rows:
        record = new_record(meta)
        for f, position in plan:
            value = row[position]
            if value is None:
                continue
            try:
                converted = convert_value(value, f.native_type)
            except (ValueError, TypeError) as e:
                error = ConversionError(meta.table_name, f.column, value, f.native_type)
                if strict:
                    raise error from e
                logger.warning(f"Skipping value: {error}")
                continue
            object.__setattr__(record, f.name, converted)
        records.append(record)
    return records
