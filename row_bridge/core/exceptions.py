"""RowBridge exception hierarchy.

All exceptions are RowBridge-specific. Reflective and driver faults are
wrapped with ``raise ... from exc`` so the original cause stays reachable.
"""

from __future__ import annotations


class RowBridgeError(Exception):
    """Base exception for all RowBridge errors."""


# --- Metadata ---


class MetadataError(RowBridgeError):
    """Raised when a record type cannot be introspected."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        self.detail = detail
        super().__init__(f"Cannot read column metadata of {target_class}: {detail}")


# --- Mapping ---


class MappingError(RowBridgeError):
    """Raised on reflective read/write failures during object/row conversion."""


class RowAccessError(MappingError):
    """Raised when a column cannot be read from the underlying row."""

    def __init__(self, column_name: str, detail: str) -> None:
        self.column_name = column_name
        super().__init__(f"Cannot read column '{column_name}': {detail}")


# --- Keys ---


class KeyProviderError(RowBridgeError):
    """Base for primary key generation and assignment errors."""


class KeyGenerationError(KeyProviderError):
    """Raised when a key generator cannot produce a key."""


class KeyAssignmentError(KeyProviderError):
    """Raised when a generated key cannot be written into a record."""

    def __init__(self, field_name: str, detail: str) -> None:
        self.field_name = field_name
        super().__init__(f"Error assigning a new primary key value to '{field_name}': {detail}")


# --- Statements ---


class StatementError(RowBridgeError):
    """Base for statement loading errors."""


class ResourceNotFoundError(StatementError, LookupError):
    """Raised when a statement exists in neither the dialect nor the generic location."""

    def __init__(self, owner: str, statement_name: str) -> None:
        self.owner = owner
        self.statement_name = statement_name
        super().__init__(f"Unable to load SQL resource '{statement_name}' for {owner}")


# --- Execution ---


class ExecutionError(RowBridgeError):
    """Base for statement execution errors."""


class ParameterBindingError(ExecutionError):
    """Raised when the driver rejects a statement or its parameters."""

    def __init__(self, statement: str, detail: str) -> None:
        self.statement = statement
        super().__init__(f"Parameter binding error for '{statement}': {detail}")


class MultipleRowsError(ExecutionError):
    """Raised when fetch_one encounters more than one row."""

    def __init__(self, statement: str, row_count: int) -> None:
        self.statement = statement
        self.row_count = row_count
        super().__init__(
            f"fetch_one for '{statement}' returned {row_count} rows (expected 0 or 1)"
        )
