"""Core types shared by every tablemap layer."""

from .config import Config
from .context import Context
from .exceptions import (
    CancelledError,
    ConversionError,
    DeadlineExceededError,
    EntityNotRegisteredError,
    NotFoundError,
    SchemaError,
    StoreError,
    TableMapError,
    TransactionError,
)
from .logging import configure_logging, disable_logging

__all__ = [
    "Config",
    "Context",
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
