"""Type-directed conversion of scanned column values into field types."""

from __future__ import annotations

import enum
import json
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

_TRUE_STRINGS = {"1", "true", "t", "yes", "y"}
_FALSE_STRINGS = {"0", "false", "f", "no", "n"}

_ZERO_VALUES: dict[Any, Any] = {
    int: 0,
    float: 0.0,
    str: "",
    bool: False,
    bytes: b"",
    Decimal: Decimal(0),
}


def zero_value(native_type: Any) -> Any:
    """Zero value for a native type; None when the type has none."""
    return _ZERO_VALUES.get(native_type)


def is_zero(value: Any) -> bool:
    """Whether a primary-key value means "not yet persisted"."""
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return value == 0
    if isinstance(value, (str, bytes)):
        return len(value) == 0
    return False


def convert_value(value: Any, target: Any) -> Any:
    """Convert a database value into target.

    Args:
        value: Non-None value as returned by the driver.
        target: Native field type from FieldMetadata.native_type.

    Returns:
        The converted value.

    Raises:
        ValueError: If the value cannot be represented as target.
        TypeError: If no conversion from the value's type exists.
    """
    if target is object or target is None:
        return value
    if isinstance(target, type) and issubclass(target, enum.Enum):
        return _to_enum(value, target)
    if target is bool:
        return _to_bool(value)
    if target is date and isinstance(value, datetime):
        return value.date()
    if isinstance(value, target) and not (target is int and isinstance(value, bool)):
        return value

    converter = _CONVERTERS.get(target)
    if converter is None:
        raise TypeError(f"no conversion from {type(value).__name__} to {target!r}")
    return converter(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, Decimal)):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"{value!r} is not a boolean")
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"{value!r} is not a boolean")
    raise TypeError(f"no conversion from {type(value).__name__} to bool")


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value!r} has a fractional part")
        return int(value)
    if isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise ValueError(f"{value!r} has a fractional part")
        return int(value)
    if isinstance(value, (str, bytes)):
        return int(value)
    raise TypeError(f"no conversion from {type(value).__name__} to int")


def _to_float(value: Any) -> float:
    if isinstance(value, (int, Decimal, str)):
        return float(value)
    raise TypeError(f"no conversion from {type(value).__name__} to float")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, (int, str)):
        try:
            return Decimal(value)
        except InvalidOperation as e:
            raise ValueError(f"{value!r} is not a decimal") from e
    if isinstance(value, float):
        return Decimal(str(value))
    raise TypeError(f"no conversion from {type(value).__name__} to Decimal")


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    if isinstance(value, (int, float, Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"no conversion from {type(value).__name__} to str")


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"no conversion from {type(value).__name__} to bytes")


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    raise TypeError(f"no conversion from {type(value).__name__} to datetime")


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text)
    raise TypeError(f"no conversion from {type(value).__name__} to date")


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, str):
        return uuid.UUID(value)
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    raise TypeError(f"no conversion from {type(value).__name__} to UUID")


def _from_json(target: type):
    def convert(value: Any) -> Any:
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).decode("utf-8")
        if not isinstance(value, str):
            raise TypeError(f"no conversion from {type(value).__name__} to {target.__name__}")
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON: {e}") from e
        if not isinstance(decoded, target):
            raise ValueError(f"JSON value is {type(decoded).__name__}, not {target.__name__}")
        return decoded

    return convert


def _to_enum(value: Any, target: type[enum.Enum]) -> enum.Enum:
    if isinstance(value, target):
        return value
    try:
        return target(value)
    except ValueError:
        if isinstance(value, str) and value in target.__members__:
            return target[value]
        raise


_CONVERTERS = {
    int: _to_int,
    float: _to_float,
    Decimal: _to_decimal,
    str: _to_str,
    bytes: _to_bytes,
    datetime: _to_datetime,
    date: _to_date,
    uuid.UUID: _to_uuid,
    dict: _from_json(dict),
    list: _from_json(list),
}
