"""Custom exceptions for tablemap."""

from typing import Any


class TableMapError(Exception):
    """Base exception for all tablemap errors."""

    pass


class SchemaError(TableMapError):
    """Entity metadata is malformed or missing."""

    def __init__(self, message: str, entity: str | None = None, attribute: str | None = None):
        """Initialize exception with the offending entity and attribute.

        Args:
            message: Human readable description of the problem.
            entity: Name of the entity type being described.
            attribute: Name of the attribute that caused the failure.
        """
        self.entity = entity
        self.attribute = attribute
        prefix = ""
        if entity and attribute:
            prefix = f"{entity}.{attribute}: "
        elif entity:
            prefix = f"{entity}: "
        super().__init__(f"{prefix}{message}")


class EntityNotRegisteredError(SchemaError, LookupError):
    """A repository was requested for a type the registry has never seen."""

    def __init__(self, entity: str):
        super().__init__("entity is not registered", entity=entity)


class NotFoundError(TableMapError, LookupError):
    """A single-result query matched zero rows."""

    def __init__(self, table: str, message: str | None = None):
        self.table = table
        super().__init__(message or f"No rows found in {table!r}")


class StoreError(TableMapError):
    """The underlying store rejected or failed to execute a statement."""

    def __init__(
        self,
        message: str,
        statement: str | None = None,
        original: BaseException | None = None,
    ):
        """Initialize exception with the failing statement.

        Args:
            message: Description of the failure, including the store's text.
            statement: SQL statement that was being executed, if any.
            original: The native driver exception.
        """
        self.statement = statement
        self.original = original
        super().__init__(message)


class TransactionError(StoreError):
    """Commit or rollback of a transaction failed."""

    def __init__(
        self,
        message: str,
        original: BaseException | None = None,
        body_error: BaseException | None = None,
    ):
        self.body_error = body_error
        super().__init__(message, original=original)


class CancelledError(StoreError):
    """The call was aborted because its context was cancelled."""

    pass


class DeadlineExceededError(CancelledError):
    """The call was aborted because its context deadline passed."""

    pass


class ConversionError(TableMapError):
    """A scanned column value could not be coerced into its field type."""

    def __init__(self, table: str, column: str, value: Any, target: type):
        self.table = table
        self.column = column
        self.value = value
        self.target = target
        super().__init__(
            f"Cannot convert {table}.{column} value {value!r} "
            f"({type(value).__name__}) to {getattr(target, '__name__', target)}"
        )
